"""Progress store: load/save the single progress record per (user, simulation).

Writes are compare-and-swap on ``version``: an update only lands if the row
still carries the version that was read, otherwise ConcurrencyConflict is
raised and the caller reloads and retries.
"""
import json
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ConcurrencyConflict
from app.models.progress import SimulationProgressRow
from app.schemas.progress import ChoiceRecordSchema, ProgressStatus, SimulationProgressSchema
from app.schemas.stats import SimulationResultSchema
from app.services.persistence import as_utc, guarded, utcnow

logger = logging.getLogger(__name__)


def _to_schema(row: SimulationProgressRow) -> SimulationProgressSchema:
    return SimulationProgressSchema(
        user_id=row.user_id,
        simulation_id=row.simulation_id,
        attempt=row.attempt,
        current_step=row.current_step,
        total_score=row.total_score,
        choices=tuple(ChoiceRecordSchema(**c) for c in json.loads(row.choices_json or "[]")),
        status=ProgressStatus(row.status),
        started_at=as_utc(row.started_at),
        completed_at=as_utc(row.completed_at),
        version=row.version,
    )


def _columns(progress: SimulationProgressSchema) -> dict:
    return {
        "attempt": progress.attempt,
        "current_step": progress.current_step,
        "total_score": progress.total_score,
        "status": progress.status.value,
        "choices_json": json.dumps([c.model_dump(mode="json") for c in progress.choices]),
        "started_at": progress.started_at,
        "completed_at": progress.completed_at,
        "updated_at": utcnow(),
    }


class ProgressStore:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession], timeout: float = 5.0):
        self._sessionmaker = sessionmaker
        self._timeout = timeout

    async def _fetch_row(self, db: AsyncSession, user_id: str, simulation_id: str) -> SimulationProgressRow | None:
        result = await db.execute(
            select(SimulationProgressRow).where(
                SimulationProgressRow.user_id == user_id,
                SimulationProgressRow.simulation_id == simulation_id,
            )
        )
        return result.scalar_one_or_none()

    async def load(self, user_id: str, simulation_id: str) -> SimulationProgressSchema | None:
        async def _load():
            async with self._sessionmaker() as db:
                row = await self._fetch_row(db, user_id, simulation_id)
                return _to_schema(row) if row else None

        return await guarded(_load(), self._timeout, "load")

    async def load_result(self, user_id: str, simulation_id: str) -> SimulationResultSchema | None:
        async def _load_result():
            async with self._sessionmaker() as db:
                row = await self._fetch_row(db, user_id, simulation_id)
                if row is None or not row.result_json:
                    return None
                return SimulationResultSchema.model_validate_json(row.result_json)

        return await guarded(_load_result(), self._timeout, "load_result")

    async def save(
        self,
        progress: SimulationProgressSchema,
        result: SimulationResultSchema | None = None,
    ) -> SimulationProgressSchema:
        """Upsert ``progress``; returns it with the new store version.

        ``progress.version`` is the version that was read (``None`` for a
        record that did not exist). Passing ``result`` stores the final
        result alongside; otherwise any stored result is cleared.
        """
        values = _columns(progress)
        values["result_json"] = result.model_dump_json() if result is not None else None

        async def _save() -> int:
            async with self._sessionmaker() as db:
                if progress.version is None:
                    db.add(
                        SimulationProgressRow(
                            user_id=progress.user_id,
                            simulation_id=progress.simulation_id,
                            version=1,
                            **values,
                        )
                    )
                    try:
                        await db.commit()
                    except IntegrityError as exc:
                        await db.rollback()
                        raise ConcurrencyConflict(
                            f"Progress for {progress.user_id}/{progress.simulation_id} was created concurrently"
                        ) from exc
                    return 1

                new_version = progress.version + 1
                outcome = await db.execute(
                    update(SimulationProgressRow)
                    .where(
                        SimulationProgressRow.user_id == progress.user_id,
                        SimulationProgressRow.simulation_id == progress.simulation_id,
                        SimulationProgressRow.version == progress.version,
                    )
                    .values(version=new_version, **values)
                )
                if outcome.rowcount != 1:
                    await db.rollback()
                    logger.info(
                        "Stale progress write for %s/%s at version %s",
                        progress.user_id, progress.simulation_id, progress.version,
                    )
                    raise ConcurrencyConflict(
                        f"Progress for {progress.user_id}/{progress.simulation_id} changed since version {progress.version}"
                    )
                await db.commit()
                return new_version

        version = await guarded(_save(), self._timeout, "save")
        return progress.model_copy(update={"version": version})
