"""
SequenceService -- per-series document sequence allocation.

Responsibility:
    Hands out the sequence number embedded in every document identifier.
    One counter row per series key carries the current value and the
    fiscal year it was issued under; the first value of every fiscal year
    is 2.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by ApprovalService while minting quotation and contract numbers.

Invariants enforced:
    - Atomic increment-or-reset: a single conditional
      ``UPDATE ... SET sequence = CASE WHEN fiscal_year = :fy THEN
      sequence + 1 ELSE 2 END ... RETURNING sequence`` decides between
      increment and fiscal-year reset under the row lock.  The counter is
      NEVER read and then written in two separate statements.
    - Transactional: the increment is only visible after the caller's
      transaction commits.

Failure modes:
    - IntegrityError: Concurrent first-use creation race (handled via
      savepoint rollback and a second conditional update).
    - StoreFailureError: any other persistence error, with series_key and
      fiscal_year attached.
"""

from dataclasses import dataclass
from datetime import date

from sqlalchemy import BigInteger, String, case, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from salesdoc_kernel.db.base import Base
from salesdoc_kernel.db.errors import store_operation
from salesdoc_kernel.domain.fiscal_year import fiscal_year_for
from salesdoc_kernel.logging_config import get_logger
from salesdoc_kernel.services.base import BaseService

logger = get_logger("services.sequence")

# Business rule: the first number issued in every fiscal year is 2.
SEQUENCE_START_VALUE = 2


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents one series with its current value and the fiscal
    year that value was issued under.
    """

    __tablename__ = "sequence_counters"

    # Series key (e.g., "quotation", "contract")
    series_key: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    sequence: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=SEQUENCE_START_VALUE,
    )

    fiscal_year: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
    )


@dataclass(frozen=True)
class CounterSnapshot:
    series_key: str
    sequence: int
    fiscal_year: str


class SequenceService(BaseService):
    """
    Service for allocating per-series document sequence numbers.

    Guarantees:
        - Two callers never receive the same value for the same series
          within the same fiscal year.
        - The first call for a series, and the first call after the fiscal
          year changes, return SEQUENCE_START_VALUE.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT format identifiers (see domain.numbering).

    Usage:
        with session_scope() as session:
            seq = SequenceService(session).next_value("quotation", date.today())
    """

    QUOTATION = "quotation"
    CONTRACT = "contract"

    def __init__(self, session: Session):
        super().__init__(session)

    def _increment_or_reset(self, series_key: str, fiscal_year: str) -> int | None:
        stmt = (
            update(SequenceCounter)
            .where(SequenceCounter.series_key == series_key)
            .values(
                sequence=case(
                    (
                        SequenceCounter.fiscal_year == fiscal_year,
                        SequenceCounter.sequence + 1,
                    ),
                    else_=literal(SEQUENCE_START_VALUE, BigInteger),
                ),
                fiscal_year=fiscal_year,
            )
            .returning(SequenceCounter.sequence)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def next_value(self, series_key: str, as_of: date) -> int:
        """
        Get the next value for ``series_key`` in the fiscal year of ``as_of``.

        Preconditions:
            - ``series_key`` is a non-empty string.
            - The caller is within an active database transaction.

        Postconditions:
            - Returns SEQUENCE_START_VALUE if the counter did not exist or
              was last issued under another fiscal year; otherwise the
              stored value plus one.
            - The counter row stays locked until the transaction completes.
        """
        fiscal_year = fiscal_year_for(as_of)

        with store_operation("sequence_next_value", series_key=series_key, fiscal_year=fiscal_year):
            value = self._increment_or_reset(series_key, fiscal_year)

            if value is None:
                # First use of this series.  Another worker may be creating
                # it at the same time; the savepoint keeps the caller's work.
                savepoint = self.session.begin_nested()
                try:
                    self.session.add(
                        SequenceCounter(
                            series_key=series_key,
                            sequence=SEQUENCE_START_VALUE,
                            fiscal_year=fiscal_year,
                        )
                    )
                    self.session.flush()
                    savepoint.commit()
                    logger.info(
                        "sequence_counter_created",
                        extra={
                            "series_key": series_key,
                            "fiscal_year": fiscal_year,
                            "value": SEQUENCE_START_VALUE,
                        },
                    )
                    return SEQUENCE_START_VALUE
                except IntegrityError:
                    logger.debug(
                        "sequence_counter_race_retry",
                        extra={"series_key": series_key},
                    )
                    savepoint.rollback()
                    value = self._increment_or_reset(series_key, fiscal_year)
                    if value is None:
                        raise

        if value == SEQUENCE_START_VALUE:
            logger.info(
                "sequence_reset",
                extra={"series_key": series_key, "fiscal_year": fiscal_year, "value": value},
            )
        else:
            logger.debug(
                "sequence_allocated",
                extra={"series_key": series_key, "fiscal_year": fiscal_year, "value": value},
            )
        return value

    def current(self, series_key: str) -> CounterSnapshot | None:
        """
        Current state of a counter without incrementing.

        Returns:
            CounterSnapshot, or None if the series was never used.
        """
        with store_operation("sequence_current", series_key=series_key):
            row = self.session.execute(
                select(SequenceCounter.sequence, SequenceCounter.fiscal_year)
                .where(SequenceCounter.series_key == series_key)
            ).one_or_none()

        if row is None:
            return None
        return CounterSnapshot(series_key=series_key, sequence=row.sequence, fiscal_year=row.fiscal_year)
