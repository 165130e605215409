"""
Consensus Service

Turns the attendance reports collected for a survey into per-member
attended / did-not-attend verdicts and writes the permanent completion
ledger.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from pymongo import ReturnDocument

from ridehub.database import get_db, start_transaction
from ridehub.exceptions import DependencyError, SurveyNotFoundError
from ridehub.models.survey import (
    ConsensusResult,
    MemberVerdict,
    RideCompletion,
    SurveyStatus,
)
from ridehub.services.membership_service import MembershipService
from ridehub.services.notification_service import NotificationService
from ridehub.utils.timezone_utils import utc_now


logger = logging.getLogger(__name__)


class ConsensusService:
    """Service for resolving attendance surveys."""

    def __init__(self):
        self.membership = MembershipService()
        self.notification_service = NotificationService()

    # =========================================================================
    # Vote Tallying
    # =========================================================================

    @staticmethod
    def tally_votes(member_ids: Iterable[str], responses: List[dict]) -> List[MemberVerdict]:
        """
        Compute a verdict for every member of the snapshot.

        A member is confirmed when more than half of the responses list them.
        At exactly half, the member's own response breaks the tie: confirmed
        only if they submitted a response that includes themselves. With no
        responses nobody is confirmed.

        Args:
            member_ids: Frozen member snapshot of the survey
            responses: Response documents with respondent_user_id and
                attended_user_ids

        Returns:
            One MemberVerdict per member, in snapshot order
        """
        total = len(responses)
        attended_sets = [set(r.get("attended_user_ids") or []) for r in responses]
        self_reports = {
            r["respondent_user_id"]: r["respondent_user_id"] in attended
            for r, attended in zip(responses, attended_sets)
        }

        verdicts = []
        for member_id in member_ids:
            votes = sum(1 for attended in attended_sets if member_id in attended)
            percentage = (votes / total * 100) if total > 0 else 0.0
            self_reported = self_reports.get(member_id, False)

            # Compare 2*votes with total to avoid float equality at 50%
            if total == 0:
                confirmed = False
            elif 2 * votes > total:
                confirmed = True
            elif 2 * votes == total:
                confirmed = self_reported
            else:
                confirmed = False

            verdicts.append(
                MemberVerdict(
                    user_id=member_id,
                    vote_count=votes,
                    total_voters=total,
                    percentage=round(percentage, 1),
                    self_reported=self_reported,
                    confirmed=confirmed,
                )
            )

        return verdicts

    # =========================================================================
    # Resolution
    # =========================================================================

    async def resolve_consensus(self, survey_id: str) -> ConsensusResult:
        """
        Resolve one survey exactly once.

        A survey still in progress (an admin resolving early) is closed to
        new reports before the responses are read.

        The claim on ``consensus_processed`` and the completion inserts run in
        one transaction: either both land or neither does, so a failure here
        leaves the survey unprocessed for the next sweep to re-drive.

        Raises:
            SurveyNotFoundError: unknown survey id
        """
        db = get_db()

        survey = await db.ride_attendance_surveys.find_one({"survey_id": survey_id})
        if not survey:
            raise SurveyNotFoundError(f"Survey {survey_id} not found")

        if survey.get("consensus_processed"):
            logger.info(f"[Consensus] Survey {survey_id} already processed")
            return ConsensusResult(survey_id=survey_id, already_processed=True)

        if survey.get("status") == SurveyStatus.IN_PROGRESS.value:
            await self._close_survey(survey_id)

        ride_id = survey["ride_id"]
        member_ids = await self._eligible_members(survey)

        # Read only after the survey is closed: no report can commit past this point
        responses = await db.ride_attendance_responses.find(
            {"survey_id": survey_id}
        ).to_list(None)

        verdicts = self.tally_votes(member_ids, responses)
        for verdict in verdicts:
            logger.debug(
                f"[Consensus] Survey {survey_id} member {verdict.user_id}: "
                f"{verdict.vote_count}/{verdict.total_voters} votes "
                f"({verdict.percentage:.1f}%) - "
                f"{'CONFIRMED' if verdict.confirmed else 'NOT CONFIRMED'}"
            )

        now = utc_now()
        completions = [
            RideCompletion(
                completion_id=str(uuid.uuid4()),
                ride_id=ride_id,
                survey_id=survey_id,
                user_id=v.user_id,
                vote_count=v.vote_count,
                total_voters=v.total_voters,
                completed_at=now,
            ).model_dump()
            for v in verdicts
            if v.confirmed
        ]

        async with start_transaction() as session:
            claimed = await db.ride_attendance_surveys.find_one_and_update(
                {"survey_id": survey_id, "consensus_processed": False},
                {
                    "$set": {
                        "status": SurveyStatus.COMPLETED.value,
                        "consensus_processed": True,
                        "updated_at": now,
                    }
                },
                return_document=ReturnDocument.AFTER,
                session=session,
            )

            if claimed is None:
                # Another resolver won the compare-and-set
                logger.info(f"[Consensus] Survey {survey_id} claimed concurrently")
                return ConsensusResult(survey_id=survey_id, already_processed=True)

            if completions:
                await db.ride_completions.insert_many(completions, session=session)

        confirmed_ids = [c["user_id"] for c in completions]
        logger.info(
            f"[Consensus] Survey {survey_id} (ride {ride_id}) completed: "
            f"{len(confirmed_ids)}/{len(member_ids)} confirmed from "
            f"{len(responses)} responses"
        )

        sent = await self._notify_payment_shares(ride_id, confirmed_ids)

        return ConsensusResult(
            survey_id=survey_id,
            completions=len(confirmed_ids),
            total_responses=len(responses),
            total_members=len(member_ids),
            confirmed_user_ids=confirmed_ids,
            payment_notifications_sent=sent,
        )

    async def _close_survey(self, survey_id: str) -> None:
        """
        Stop accepting reports before tallying.

        Report submission only counts against an in-progress survey, so once
        this flip lands a late report aborts instead of being missed.
        """
        db = get_db()
        result = await db.ride_attendance_surveys.update_one(
            {"survey_id": survey_id, "status": SurveyStatus.IN_PROGRESS.value},
            {"$set": {"status": SurveyStatus.EXPIRED.value, "updated_at": utc_now()}},
        )
        if result.modified_count:
            logger.info(f"[Consensus] Survey {survey_id} closed before resolution")

    async def _eligible_members(self, survey: dict) -> List[str]:
        """Member snapshot of the survey; live membership for surveys created without one."""
        snapshot = survey.get("member_ids")
        if snapshot:
            return list(snapshot)
        return await self.membership.list_joined_members(survey["ride_id"])

    async def _notify_payment_shares(
        self, ride_id: str, confirmed_ids: List[str]
    ) -> int:
        """
        Tell confirmed non-payers their share of an already entered payment.

        Best-effort: lookup or dispatch failures are logged and never undo
        the consensus write.
        """
        if not confirmed_ids:
            return 0

        try:
            payment: Optional[dict] = await self.membership.get_payment(ride_id)
        except DependencyError as e:
            logger.error(f"[Consensus] Skipping payment shares for ride {ride_id}: {e}")
            return 0

        if not payment:
            return 0

        split_amount = float(payment["amount"]) / len(confirmed_ids)
        payer_id = payment.get("payer_user_id")
        payer_name = await self.membership.get_display_name(payer_id)

        sent = 0
        for user_id in confirmed_ids:
            if user_id == payer_id:
                continue
            if await self.notification_service.notify_payment_share(
                user_id=user_id,
                ride_id=ride_id,
                payment=payment,
                payer_name=payer_name,
                split_amount=split_amount,
            ):
                sent += 1

        logger.info(f"[Consensus] Sent {sent} payment share notifications for ride {ride_id}")
        return sent
