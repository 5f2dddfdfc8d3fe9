import asyncio
import binascii
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from app.config import RegistrationPolicy, Settings
from app.exceptions import (
    DuplicateTemplate,
    InvalidTemplate,
    MissingFingerprintId,
    MissingTemplate,
    NotFound,
    StoreError,
)
from app.models.finger_print import FingerPrint
from app.repos.fingerprint_repo import FingerPrintRepository
from app.schemas.finger_print import MatchStatus
from template_matcher import TemplateMatcher, confidence_band, decode_template, encode_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisterOutcome:
    record: FingerPrint
    created: bool


@dataclass(frozen=True)
class MatchOutcome:
    status: MatchStatus
    similarity: float
    record: Optional[FingerPrint] = None
    confidence: Optional[str] = None
    attendance_logged: bool = False

    @property
    def matched(self) -> bool:
        return self.status == MatchStatus.matched


class FingerPrintService:
    def __init__(
        self,
        repo: FingerPrintRepository,
        settings: Settings,
        executor: Optional[Executor] = None,
    ):
        self.repo = repo
        self.settings = settings
        self.executor = executor
        self.matcher = TemplateMatcher(settings.length_policy)

    # ----------------------
    # Validation
    # ----------------------
    def parse_template(self, template: Optional[str]) -> bytes:
        try:
            raw = decode_template(template)
        except binascii.Error as e:
            raise InvalidTemplate() from e
        if not raw:
            raise MissingTemplate()
        return raw

    # ----------------------
    # Registration
    # ----------------------
    async def register(self, template: Optional[str], fingerprint_id: Optional[str] = None) -> RegisterOutcome:
        raw = self.parse_template(template)
        canonical = encode_template(raw)
        policy = self.settings.registration_policy

        if policy == RegistrationPolicy.upsert:
            if not fingerprint_id or not fingerprint_id.strip():
                raise MissingFingerprintId()
            existing = await self.repo.find_by_fingerprint_id(fingerprint_id)
            if existing is not None:
                record = await self.repo.replace_template(existing, canonical)
                logger.info(f"Replaced template for fingerprint {record.id} ({fingerprint_id})")
                return RegisterOutcome(record=record, created=False)
        elif policy == RegistrationPolicy.autoincrement_dedupe:
            duplicate = await self.repo.find_by_exact_template(canonical)
            if duplicate is not None:
                logger.info(f"Rejected duplicate template, already stored as {duplicate.id}")
                raise DuplicateTemplate(duplicate.id)

        max_id = await self.repo.find_max_id()
        new_id = (max_id or 0) + 1
        record = await self.repo.insert(FingerPrint(
            id=new_id,
            fingerprint_id=fingerprint_id if policy == RegistrationPolicy.upsert else None,
            template=canonical,
        ))
        logger.info(f"Registered fingerprint {record.id} ({len(raw)} bytes)")
        return RegisterOutcome(record=record, created=True)

    # ----------------------
    # Matching
    # ----------------------
    def find_best_match(self, raw: bytes, candidates: Sequence[FingerPrint]) -> Tuple[Optional[FingerPrint], float]:
        """
        Scan all candidates and keep the highest similarity

        Ties keep the first candidate seen, so the result depends on the
        iteration order of the candidates (ascending id from the store).
        """
        best_match = None
        best_score = 0.0

        for fp in candidates:
            try:
                stored = decode_template(fp.template)
            except binascii.Error:
                logger.warning(f"Skipping fingerprint {fp.id}: stored template is not valid base64")
                continue
            similarity = self.matcher.similarity(raw, stored)
            if best_match is None or similarity > best_score:
                best_score = similarity
                best_match = fp

        return best_match, best_score

    async def match(self, template: Optional[str]) -> MatchOutcome:
        raw = self.parse_template(template)
        stored = await self.repo.find_all()

        loop = asyncio.get_running_loop()
        best_match, best_score = await loop.run_in_executor(
            self.executor, self.find_best_match, raw, stored
        )

        if best_match is None:
            logger.info("No fingerprints in database")
            return MatchOutcome(status=MatchStatus.no_match, similarity=0.0)

        if best_score < self.settings.match_threshold:
            logger.info(
                f"No match above threshold {self.settings.match_threshold}. "
                f"Closest: fingerprint {best_match.id} at {best_score:.2f}%"
            )
            return MatchOutcome(status=MatchStatus.no_match, similarity=best_score, record=best_match)

        confidence = confidence_band(best_score, self.settings.high_confidence_threshold)
        attendance_logged = False
        if self.settings.attendance_enabled:
            self.repo.detach(best_match)
            attendance_logged = await self._log_attendance(best_match.id)

        logger.info(f"Fingerprint {best_match.id} matched at {best_score:.2f}% ({confidence})")
        return MatchOutcome(
            status=MatchStatus.matched,
            similarity=best_score,
            record=best_match,
            confidence=confidence,
            attendance_logged=attendance_logged,
        )

    async def _log_attendance(self, fingerprint_id: int) -> bool:
        # The match decision stands even if the write fails
        try:
            await self.repo.insert_attendance(fingerprint_id)
            return True
        except StoreError:
            logger.exception(f"Could not log attendance for fingerprint {fingerprint_id}")
            return False

    # ----------------------
    # Inspection
    # ----------------------
    async def list_all(self) -> List[FingerPrint]:
        return await self.repo.find_all()

    async def get(self, fingerprint_id: int) -> FingerPrint:
        fingerprint = await self.repo.find_by_id(fingerprint_id)
        if fingerprint is None:
            raise NotFound(fingerprint_id)
        return fingerprint

    async def decode(self, fingerprint_id: int) -> str:
        fingerprint = await self.get(fingerprint_id)
        return decode_template(fingerprint.template).hex()

    async def list_attendance(self, fingerprint_id: int):
        await self.get(fingerprint_id)
        return await self.repo.list_attendance(fingerprint_id)
