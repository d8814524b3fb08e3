"""Command-line interface for alignprint.

Commands:
    profiles  - List the built-in fingerprint profiles
    generate  - Fingerprint an audio file and print its subfingerprints
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from .audio import Track
from .config import load_config
from .generator import FingerprintGenerator
from .logger import setup_logging
from .profiles import Profile, get_profile, get_profiles, load_profile
from .sinks import CallbackSink, SubFingerprintBatch


def cmd_profiles(args: argparse.Namespace) -> int:
    """List built-in profiles."""
    print(f"{'Name':<10} {'Rate':>6} {'Window':>7} {'Hop':>5} {'Taps':>5} {'Classifiers':>12} {'Step (ms)':>10}")
    print("=" * 60)
    for profile in get_profiles():
        print(
            f"{profile.name:<10} {profile.sampling_rate:>6} {profile.window_size:>7} "
            f"{profile.hop_size:>5} {len(profile.chroma_filter_coefficients):>5} "
            f"{len(profile.classifiers):>12} {profile.hash_time_scale * 1000:>10.1f}"
        )
    return 0


def _resolve_profile(args: argparse.Namespace) -> Profile:
    if args.profile_file:
        return load_profile(args.profile_file)
    if args.profile:
        return get_profile(args.profile)
    if args.config_data.generator.profile_file:
        return load_profile(args.config_data.generator.profile_file)
    return get_profile(args.config_data.generator.profile)


def cmd_generate(args: argparse.Namespace) -> int:
    """Fingerprint a single audio file."""
    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    try:
        profile = _resolve_profile(args)
    except (KeyError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    def print_batch(batch: SubFingerprintBatch) -> None:
        for sf in batch.sub_fingerprints:
            value = f"{sf.hash:08x}" if args.format == "hex" else str(sf.hash)
            print(f"{sf.index}\t{value}")

    generator = FingerprintGenerator(profile, CallbackSink(on_batch=print_batch))

    start = time.time()
    count = generator.generate(Track(path=path))
    elapsed = time.time() - start

    print(
        f"{path.name}: {count} subfingerprints "
        f"({profile.name}, {profile.hash_time_scale * 1000:.1f} ms step) in {elapsed:.1f}s",
        file=sys.stderr,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="alignprint",
        description="Chromaprint-style audio fingerprints for identification and sync",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: search standard locations)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # profiles command
    profiles_parser = subparsers.add_parser("profiles", help="List built-in profiles")
    profiles_parser.set_defaults(func=cmd_profiles)

    # generate command
    generate_parser = subparsers.add_parser("generate", help="Fingerprint an audio file")
    generate_parser.add_argument("file", help="Audio file to fingerprint")
    generate_parser.add_argument(
        "--profile", "-p",
        help="Built-in profile name (default: from config)",
    )
    generate_parser.add_argument(
        "--profile-file",
        type=Path,
        help="Custom YAML profile",
    )
    generate_parser.add_argument(
        "--format", "-f",
        choices=["hex", "int"],
        default="hex",
        help="Hash output format (default: hex)",
    )
    generate_parser.set_defaults(func=cmd_generate)

    args = parser.parse_args(argv)

    try:
        args.config_data = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    setup_logging(args.config_data.logging)
    logging.debug("Loaded configuration: %s", args.config_data)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
