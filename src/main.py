import argparse
import logging
import os
import sys
from typing import BinaryIO, Sequence

from resampler.engines.engine import EngineError
from resampler.resampler_config import Quality, SampleFormat, default_quality
from resampler.stream_resampler import Resampler, ResamplerError

# Canonical RIFF/WAVE header with a single fmt and data chunk.
wav_header_bytes = 44
default_chunk_frames = 4096

formats_by_name = {fmt.cli_name: fmt for fmt in SampleFormat}
qualities_by_name = {quality.cli_name: quality for quality in Quality}


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resample a WAV or raw PCM file. The output is raw PCM data."
    )
    parser.add_argument(
        "--format",
        choices=sorted(formats_by_name),
        default=SampleFormat.I16.cli_name,
        help="PCM format",
    )
    parser.add_argument("--ch", type=int, default=2, help="Number of channels")
    parser.add_argument("--ir", type=int, default=44100, help="Input sample rate")
    parser.add_argument(
        "--or", dest="output_rate", type=int, default=0, help="Output sample rate"
    )
    parser.add_argument(
        "--quality",
        choices=list(qualities_by_name),
        default=default_quality.cli_name,
        help="Resampling quality",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Feed the input in chunks and flush on close",
    )
    parser.add_argument(
        "--chunk-frames",
        type=int,
        default=default_chunk_frames,
        help="Frames per write in stream mode",
    )
    parser.add_argument("input_file")
    parser.add_argument("output_file")
    return parser.parse_args(argv)


def _read_pcm(path: str) -> bytes:
    with open(path, "rb") as f:
        data = f.read()
    if os.path.splitext(path)[1].lower() == ".wav":
        return data[wav_header_bytes:]
    return data


def _write_pcm(output: BinaryIO, pcm: bytes, args: argparse.Namespace) -> None:
    resampler = Resampler(
        output,
        args.ir,
        args.output_rate,
        args.ch,
        formats_by_name[args.format],
        qualities_by_name[args.quality],
        stream=args.stream,
    )
    try:
        if args.stream:
            chunk_bytes = args.chunk_frames * resampler.config.frame_size
            # The last chunk takes the remainder so it is never too short
            # to produce output.
            chunk_count = max(1, len(pcm) // chunk_bytes)
            for index in range(chunk_count):
                end = (
                    len(pcm) if index == chunk_count - 1 else (index + 1) * chunk_bytes
                )
                resampler.write(pcm[index * chunk_bytes : end])
        else:
            resampler.write(pcm)
    finally:
        resampler.close()


def resample_file(args: argparse.Namespace, pcm: bytes) -> None:
    output = open(args.output_file, "wb")
    try:
        with output:
            _write_pcm(output, pcm, args)
    except BaseException:
        # Never leave a truncated conversion behind.
        os.remove(args.output_file)
        raise


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    args = _parse_args(argv)
    if args.ch < 1:
        logging.error("Invalid channel number: %d", args.ch)
        return 1
    if args.ir <= 0 or args.output_rate <= 0:
        logging.error("Invalid input or output sample rate.")
        return 1
    if args.chunk_frames < 1:
        logging.error("Invalid chunk size: %d frames", args.chunk_frames)
        return 1

    try:
        pcm = _read_pcm(args.input_file)
    except OSError as e:
        logging.error("Failed to read %s: %s", args.input_file, e)
        return 1

    try:
        resample_file(args, pcm)
    except (OSError, ResamplerError, EngineError) as e:
        logging.error("Failed to resample %s: %s", args.input_file, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
