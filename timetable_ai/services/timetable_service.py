"""
timetable_service.py

Glue between the extraction pipeline and the persistence store.

Responsibilities:
- Run the orchestrator for an uploaded file
- Save the result (even when it has no events)
- Look stored results up by id
"""

import logging

from timetable_ai.exceptions import PersistenceError
from timetable_ai.schemas.timetable import TimetableRecord
from timetable_ai.schemas.upload import UploadedFile
from timetable_ai.services.orchestrator import ExtractionOrchestrator
from timetable_ai.services.store import TimetableStore

logger = logging.getLogger(__name__)


class TimetableService:
    def __init__(self, orchestrator: ExtractionOrchestrator, store: TimetableStore):
        self.orchestrator = orchestrator
        self.store = store

    def process_upload(self, file: UploadedFile) -> TimetableRecord:
        """
        Extract a timetable from `file` and persist it.

        Raises:
        - PersistenceError if the store fails (extraction itself never raises)
        """

        logger.info(f"Starting upload processing for file: {file.original_name}")

        result = self.orchestrator.run(file)
        logger.info(
            f"File processing complete. Events extracted: {len(result.events)}, "
            f"Warnings: {len(result.warnings)}"
        )

        try:
            record = self.store.save(result)
        except PersistenceError as error:
            logger.error(
                f"Could not store timetable for {file.original_name} "
                f"({len(result.events)} events): {error}"
            )
            raise

        logger.info(f"Timetable saved with ID: {record.id}")
        return record

    def get_by_id(self, timetable_id: str) -> TimetableRecord:
        """
        Raises:
        - TimetableNotFoundError when the id is unknown
        """

        logger.info(f"Retrieving timetable. ID: {timetable_id}")
        record = self.store.get(timetable_id)
        logger.debug(f"Timetable found: {timetable_id}, Events: {len(record.events)}")
        return record
