from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from itemgraph.adapters.catalog import CatalogFormatError, CatalogNotFoundError
from itemgraph.adapters.checkpoint_file import FileCheckpointStore
from itemgraph.app import run_catalog_ingest
from itemgraph.config import ConfigurationError, configure_logging, get_storage_config
from itemgraph.config.ingest import MAX_GRAPH_BATCH_SIZE, MAX_VALIDATION_BATCH_SIZE
from itemgraph.domain.ingest_pipeline import PipelineAbortedError, PipelineInterruptedError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130

_stop = threading.Event()


def stop_requested() -> bool:
    return _stop.is_set()


def _bounded_int(low: int, high: int) -> Callable[[str], int]:
    def parse(value: str) -> int:
        try:
            number = int(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
        if not low <= number <= high:
            raise argparse.ArgumentTypeError(f"must be between {low} and {high}, got {number}")
        return number

    return parse


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="itemgraph",
        description="Validate a game item catalog against market data and load it into a graph",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        help="Catalog file (defaults to items.json, items.txt or item.txt in the catalog dir)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for reports and the progress checkpoint",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        default=None,
        help="Continue from the saved checkpoint (also ITEMGRAPH_RESUME=true)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and report without writing to the graph store",
    )
    parser.add_argument(
        "--batch-size",
        type=_bounded_int(1, MAX_VALIDATION_BATCH_SIZE),
        help="Items per market validation batch (defaults to config)",
    )
    parser.add_argument(
        "--graph-batch-size",
        type=_bounded_int(1, MAX_GRAPH_BATCH_SIZE),
        help="Items per graph write transaction (defaults to config)",
    )
    parser.add_argument(
        "--graph-backend",
        choices=("sqlite", "neo4j"),
        default="sqlite",
        help="Graph store to write to (default: %(default)s)",
    )
    return parser.parse_args(list(argv))


def _log_resume_hint(output_dir: Path | None) -> None:
    checkpoint = FileCheckpointStore(get_storage_config(output_dir=output_dir).checkpoint_path())
    saved = checkpoint.load()
    if saved is None:
        log.error("No checkpoint was saved; the next run starts from the beginning")
        return
    log.error(
        "Checkpoint at %s/%s items (valid=%s, needs_validation=%s, saved_at=%s)",
        saved.last_processed_index,
        saved.total_items,
        saved.valid_count,
        saved.needs_validation_count,
        saved.saved_at,
    )
    log.error("Rerun with --resume (or ITEMGRAPH_RESUME=true) to continue from there")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        result = run_catalog_ingest(
            catalog_path=parsed_args.catalog,
            output_dir=parsed_args.output_dir,
            resume=parsed_args.resume,
            dry_run=parsed_args.dry_run,
            batch_size=parsed_args.batch_size,
            graph_batch_size=parsed_args.graph_batch_size,
            graph_backend=parsed_args.graph_backend,
            stop_requested=stop_requested,
        )
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except (CatalogNotFoundError, CatalogFormatError) as exc:
        log.error("Cannot read catalog: %s", exc)  # noqa: TRY400
        sys.exit(1)
    except PipelineInterruptedError as exc:
        log.warning("Run interrupted: %s", exc)
        _log_resume_hint(parsed_args.output_dir)
        sys.exit(EXIT_INTERRUPTED)
    except PipelineAbortedError as exc:
        state = exc.state
        log.error(  # noqa: TRY400
            "Run aborted at %s/%s items: %s", state.processed, state.total_items, exc
        )
        _log_resume_hint(parsed_args.output_dir)
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during ingest")
        sys.exit(1)

    log.info("Reports written to %s", result.emitted.report_path.parent)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully.

    The first Ctrl+C lets the current batch finish; a second one exits at once.
    """
    if _stop.is_set():
        log.warning("Closed by user (Ctrl+C); the current batch was not finished")
        sys.exit(EXIT_INTERRUPTED)
    _stop.set()
    log.info("Stopping after the current batch (press Ctrl+C again to quit immediately)")


def run() -> None:
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
