#!/usr/bin/env python
"""
AmbientNoiseLoop - looped gradient-noise ambience with a cached track

On start the cached track is loaded and played on a loop. If there is no
cached track, or the cached one can no longer be resolved, a new track is
synthesized chunk by chunk, encoded as a 32-bit float WAV file, published,
cached and played.
"""

import argparse
import logging
import time

from models.constants import Constants, PlayerState
from models.parameters import NoiseParameters
from output.status import ConsoleStatusRenderer
from player import AppContext, NoiseLoopPlayer
from utils.config import ConfigManager
from utils.logging import setup_logging

logger = logging.getLogger(Constants.LOGGER_NAME)


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Generate and loop an ambient gradient-noise track"
    )

    parser.add_argument("--config", type=str, help="Configuration file (INI format)")
    parser.add_argument(
        "--regenerate",
        action="store_true",
        help="Generate a new track even if a cached one is available",
    )

    # Generation options
    parser.add_argument("--duration", type=int, help="Track duration in seconds")
    parser.add_argument("--sample-rate", type=int, help="Sample rate in Hz")
    parser.add_argument(
        "--frequencies",
        type=float,
        nargs=3,
        metavar=("F1", "F2", "F3"),
        help="The three noise layer frequencies in Hz",
    )
    parser.add_argument("--seed", type=int, help="Random seed for reproducible noise")

    # Storage options
    parser.add_argument("--cache-file", type=str, help="Where the cached track reference is stored")
    parser.add_argument("--publish-dir", type=str, help="Directory receiving generated tracks")
    parser.add_argument("--output", type=str, help="Also save the generated track to this WAV file")

    # Playback options
    parser.add_argument("--no-play", action="store_true", help="Do not start playback")

    # Debug options
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-file", type=str, help="Also write the log to this file")

    return parser.parse_args(argv)


def build_player(args) -> NoiseLoopPlayer:
    """Create the player and its collaborators from configuration and arguments."""
    config = ConfigManager.get_instance(args.config)

    params = NoiseParameters.from_config(
        config,
        sample_rate=args.sample_rate,
        duration_seconds=args.duration,
        frequencies=tuple(args.frequencies) if args.frequencies else None,
        seed=args.seed,
    )
    if not params.validate():
        raise SystemExit("Invalid generation parameters")

    context = AppContext.from_config(
        config,
        ConsoleStatusRenderer(),
        params=params,
        cache_file=args.cache_file,
        publish_dir=args.publish_dir,
        export_path=args.output,
    )
    if args.no_play:
        context.autoplay = False
    return NoiseLoopPlayer(context)


def main(argv=None):
    """Main function for command-line usage"""
    args = parse_arguments(argv)

    setup_logging(verbose=args.verbose, log_to_file=bool(args.log_file), log_file=args.log_file)

    start_time = time.time()
    player = build_player(args)

    try:
        if not args.regenerate:
            player.load_cached()

        if args.regenerate or player.state == PlayerState.IDLE:
            player.request_generation().result()

        logger.info(f"Total processing time: {time.time() - start_time:.2f} seconds")

        if player.state == PlayerState.READY and not args.no_play:
            logger.info("Looping playback, press Ctrl+C to stop")
            player.context.sink.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        player.shutdown(wait=False)

    return 0 if player.state == PlayerState.READY else 1


if __name__ == "__main__":
    raise SystemExit(main())
