import pytest

from tests.utils import SAMPLE_RECORDING
from tests.utils import write_json_lines


@pytest.fixture
def sample_recording(tmp_path):
    recording = tmp_path / "recording.jsonl"
    write_json_lines(recording, SAMPLE_RECORDING)
    return recording
