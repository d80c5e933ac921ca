"""End-to-end tests for the command-line tool."""

import main
from resampler.resampler_config import SampleFormat
from resampler.stream_resampler import Resampler
from tests.helpers import tone


def run_cli(tmp_path, input_name, payload, *flags):
    input_path = tmp_path / input_name
    output_path = tmp_path / "out.raw"
    input_path.write_bytes(payload)
    status = main.main([*flags, str(input_path), str(output_path)])
    return status, output_path


def test_resamples_raw_file(tmp_path):
    status, output = run_cli(
        tmp_path, "in.raw", tone(16000), "--ch", "1", "--ir", "16000", "--or", "8000"
    )
    assert status == 0
    assert abs(output.stat().st_size // 2 - 8000) <= 4


def test_skips_wav_header(tmp_path):
    payload = b"RIFF" + bytes(40) + tone(16000)
    status, output = run_cli(
        tmp_path, "in.WAV", payload, "--ch", "1", "--ir", "16000", "--or", "8000"
    )
    assert status == 0
    assert abs(output.stat().st_size // 2 - 8000) <= 4


def test_stream_mode_matches_single_shot_size(tmp_path):
    pcm = tone(20000, channels=2, fmt=SampleFormat.F32)
    status, output = run_cli(
        tmp_path,
        "in.raw",
        pcm,
        "--format",
        "f32",
        "--ir",
        "44100",
        "--or",
        "48000",
        "--stream",
        "--chunk-frames",
        "1500",
    )
    assert status == 0
    frames_out = output.stat().st_size // 8
    assert abs(frames_out - 20000 * 48000 / 44100) <= 4


def test_rejects_invalid_arguments(tmp_path):
    status, output = run_cli(tmp_path, "in.raw", tone(100), "--ch", "0", "--or", "8000")
    assert status == 1
    assert not output.exists()

    status, output = run_cli(tmp_path, "in.raw", tone(100), "--ch", "1")
    assert status == 1
    assert not output.exists()


def test_removes_output_when_resampling_fails(tmp_path):
    status, output = run_cli(
        tmp_path, "in.raw", b"\x01", "--ch", "1", "--ir", "8000", "--or", "8000"
    )
    assert status == 1
    assert not output.exists()


def test_missing_input_file(tmp_path):
    status = main.main(["--or", "8000", str(tmp_path / "nope.raw"), str(tmp_path / "o")])
    assert status == 1
    assert not (tmp_path / "o").exists()


def test_removes_output_when_writing_output_fails(tmp_path, monkeypatch):
    def fail_after_partial_write(self, output):
        self._sink.write(b"partial")
        raise OSError("disk full")

    monkeypatch.setattr(Resampler, "_send", fail_after_partial_write)
    status, output = run_cli(
        tmp_path, "in.raw", tone(16000), "--ch", "1", "--ir", "16000", "--or", "8000"
    )
    assert status == 1
    assert not output.exists()
