"""
Field Inspection Services.

Entry points for the analysis worker and the outbox sync worker.
"""

from ddtrace import patch_all

from field_inspection.dependencies import get_analysis_worker, get_sync_worker

patch_all()


def main():
    """Starts the analysis worker."""
    worker = get_analysis_worker()
    worker.start()


def run_sync():
    """Starts the outbox sync worker."""
    worker = get_sync_worker()
    try:
        worker.start()
    except KeyboardInterrupt:
        worker.stop()


if __name__ == "__main__":
    main()
