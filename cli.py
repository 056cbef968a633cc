from __future__ import annotations

import argparse
import signal
import sys

from cwatch.events import configure_logging, log_event
from cwatch.lock import AlreadyRunning
from cwatch.reconciler import FatalError, Reconciler
from cwatch.settings import RunOptions, Settings, settings as default_settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="container-watch",
        description="Redeploy running docker compose projects whose compose file changed in git.",
    )
    p.add_argument("--force-run", action="store_true", help="Run even if a lock file is present")
    p.add_argument("--force-all", action="store_true", help="Update every running project, skip change detection")
    p.add_argument(
        "--check-images",
        action="store_true",
        help="Compare running container images with compose definitions and redeploy on mismatch",
    )
    p.add_argument(
        "--ignore-images",
        nargs="*",
        action="extend",
        default=[],
        metavar="IMAGE",
        help="Images to leave out of the image check",
    )
    p.add_argument(
        "--ignore-project",
        nargs="*",
        action="extend",
        default=[],
        metavar="PROJECT",
        help="Project directories to leave alone",
    )
    p.add_argument("--prune-images", action="store_true", help="Prune dangling images at the end of the run")
    return p


def parse_options(argv: list[str] | None = None) -> RunOptions:
    args = build_parser().parse_args(argv)
    return RunOptions.build(
        force_run=args.force_run,
        force_all=args.force_all,
        check_images=args.check_images,
        prune_images=args.prune_images,
        ignored_images=args.ignore_images,
        ignored_projects=args.ignore_project,
    )


def _announce(options: RunOptions) -> None:
    if options.force_run:
        log_event("INFO", "Running in FORCE RUN mode: will run no matter what.")
    if options.force_all:
        log_event("INFO", "Running in FORCE ALL mode: will update all currently running projects.")
    if options.check_images:
        log_event("INFO", "Running in CHECK IMAGES mode: will validate running container images against compose definitions.")
    if options.ignored_images:
        log_event("INFO", f"Ignoring images: {' '.join(sorted(options.ignored_images))}")
    if options.ignored_projects:
        log_event("INFO", f"Ignoring projects: {' '.join(sorted(options.ignored_projects))}")
    if options.prune_images:
        log_event("INFO", "Running in PRUNE IMAGES mode: will prune images that are no longer referenced.")


def _terminate(signum, frame) -> None:
    # Unwinds through the lock's finally block like any other exit.
    raise SystemExit(128 + signum)


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    settings = settings or default_settings
    options = parse_options(argv)
    configure_logging(settings.log_level)
    _announce(options)
    signal.signal(signal.SIGTERM, _terminate)

    try:
        Reconciler(options, settings).run()
    except AlreadyRunning as e:
        log_event("ERROR", f"{e} Exiting...")
        return 1
    except FatalError as e:
        log_event("ERROR", str(e))
        return 1
    except KeyboardInterrupt:
        log_event("ERROR", "Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
