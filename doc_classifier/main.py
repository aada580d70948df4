import argparse
import threading
from pathlib import Path

from doc_classifier.classification.factory import ClassifierFactory
from doc_classifier.config.settings import Settings
from doc_classifier.logging.logger import Log
from doc_classifier.processor.file_matcher import load_folder
from doc_classifier.processor.models import ProcessingPhase, ProcessingStatus
from doc_classifier.processor.processor import build_pipeline
from doc_classifier.workbook.codec import export_workbook, parse_workbook
from doc_classifier.workbook.exceptions import WorkbookError
from doc_classifier.worker.orchestrator import BatchOrchestrator
from doc_classifier.worker.status import BatchStatus


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="doc-classifier",
        description="Classify and group customer documents listed in a workbook",
    )
    p.add_argument("--workbook", type=Path, required=True, help="Workbook listing expected classifications")
    p.add_argument("--folder", type=Path, required=True, help="Folder with one sub-folder per customer")
    p.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the processed workbook (default from OUTPUT_FILENAME)",
    )
    p.add_argument("--server", default=None, help="API server name: local or remote (default from API_SERVER)")
    p.add_argument("--log-level", default=None, help="Python logging level (INFO, DEBUG, ...)")
    return p


def _log_status(status: ProcessingStatus) -> None:
    if status.message:
        Log.info(
            f"[{status.phase.value} {status.processed_customers}/{status.total_customers}] "
            f"{status.message}"
        )


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse workbook + folder -> run batch -> export workbook."""
    args = build_parser().parse_args(argv)
    overrides: dict[str, object] = {}
    if args.server:
        overrides["api_server"] = args.server
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = Settings(**overrides)
    Log.configure(settings.log_level)

    try:
        rows = parse_workbook(args.workbook)
        files = load_folder(args.folder)
    except (WorkbookError, NotADirectoryError) as exc:
        Log.error(f"Cannot load batch input: {exc}")
        return 1
    output = args.output or Path(settings.output_filename)

    cancel_event = threading.Event()
    status = BatchStatus()
    status.subscribe(_log_status)
    with ClassifierFactory.create(settings, cancel_event=cancel_event) as client:
        orchestrator = BatchOrchestrator(
            build_pipeline(client, cancel_event=cancel_event),
            settings,
            status=status,
            client=client,
            cancel_event=cancel_event,
        )
        result = orchestrator.run(rows, files)

    try:
        export_workbook(result.rows, output)
    except WorkbookError as exc:
        Log.error(str(exc))
        return 1
    return 0 if result.status.phase is ProcessingPhase.COMPLETE else 1


if __name__ == "__main__":
    raise SystemExit(main())
