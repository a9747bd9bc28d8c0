"""Bind uploaded payloads to entity media slots.

One binder serves every content kind; kinds differ only in the slot definitions
they pass in. Within a call all uploads resolve before any superseded reference
is deleted, so a slot never loses its reference to a failed upload.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from .media_errors import (
    CascadeDeletionError,
    RetirementError,
    SlotCardinalityError,
    StoreError,
    UnknownSlotError,
    UploadError,
)
from .media_models import (
    IncomingFile,
    MediaReference,
    SlotDefinition,
    SlotValue,
    iter_references,
)
from .media_store import MediaStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class BindOutcome:
    """Result of one bind call.

    ``slots`` holds the full slot map to persist. Upload and retirement errors are
    partial failures; the map is still consistent and safe to write.
    """

    slots: dict[str, SlotValue]
    changed: list[str] = field(default_factory=list)
    upload_errors: list[UploadError] = field(default_factory=list)
    retirement_errors: list[RetirementError] = field(default_factory=list)
    retired: list[MediaReference] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [error.describe() for error in self.upload_errors] + [
            error.describe() for error in self.retirement_errors
        ]


@dataclass(slots=True)
class DetachOutcome:
    slots: dict[str, SlotValue]
    detached: list[tuple[str, MediaReference]] = field(default_factory=list)


@dataclass(slots=True)
class CascadeReport:
    """Outcome of deleting every reference an entity holds."""

    attempted: int = 0
    deleted: list[MediaReference] = field(default_factory=list)
    errors: list[CascadeDeletionError] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        # Cleanup is best-effort; the caller always proceeds with document removal.
        return True

    @property
    def warnings(self) -> list[str]:
        return [error.describe() for error in self.errors]


@dataclass(slots=True)
class _Retirement:
    slot: str
    reference: MediaReference
    reason: str


class EntityMediaBinder:
    """Reconcile incoming uploads with an entity's current media references."""

    def __init__(self, store: MediaStore, *, max_concurrency: int = 10) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be positive")
        self._store = store
        self._max_concurrency = max_concurrency

    async def bind(
        self,
        slots: Sequence[SlotDefinition],
        current: Mapping[str, SlotValue],
        incoming: Mapping[str, Sequence[IncomingFile]],
        *,
        category: str | None = None,
    ) -> BindOutcome:
        definitions = {slot.name: slot for slot in slots}
        requested = {name: list(files) for name, files in incoming.items() if files}
        self._check_request(definitions, requested)

        result: dict[str, SlotValue] = {
            name: definition.empty_value() for name, definition in definitions.items()
        }
        for name, value in current.items():
            result[name] = list(value) if isinstance(value, list) else value
        outcome = BindOutcome(slots=result)
        if not requested:
            return outcome

        jobs: list[tuple[str, IncomingFile, str]] = [
            (name, payload, definitions[name].resolve_folder(category))
            for name, files in requested.items()
            for payload in files
        ]
        uploaded = await self._bounded(
            [lambda job=job: self._upload(job[1], job[2]) for job in jobs]
        )

        by_slot: dict[str, list[tuple[IncomingFile, MediaReference | StoreError]]] = {}
        for (name, payload, _), value in zip(jobs, uploaded):
            by_slot.setdefault(name, []).append((payload, value))

        retirements: list[_Retirement] = []
        for name, results in by_slot.items():
            definition = definitions[name]
            failures = [(payload, exc) for payload, exc in results if isinstance(exc, StoreError)]
            fresh = [ref for _, ref in results if isinstance(ref, MediaReference)]

            if failures:
                for payload, exc in failures:
                    outcome.upload_errors.append(
                        UploadError(
                            slot=name,
                            filename=payload.filename,
                            message=str(exc),
                            timed_out=exc.timed_out,
                        )
                    )
                    logger.warning(
                        "media.bind.upload_failed",
                        slot=name,
                        filename=payload.filename,
                        error=str(exc),
                    )
                # Siblings uploaded for an aborted slot must not linger unreferenced.
                retirements.extend(_Retirement(name, ref, "rollback") for ref in fresh)
                continue

            if definition.is_list:
                existing = result.get(name) or []
                result[name] = [*existing, *fresh]
            else:
                previous = result.get(name)
                result[name] = fresh[0]
                if isinstance(previous, MediaReference) and previous.reference_id != fresh[0].reference_id:
                    retirements.append(_Retirement(name, previous, "replaced"))
            outcome.changed.append(name)

        outcome.retirement_errors.extend(await self._retire(retirements, outcome.retired))
        logger.info(
            "media.bind.completed",
            changed=outcome.changed,
            upload_failures=len(outcome.upload_errors),
            retirement_failures=len(outcome.retirement_errors),
        )
        return outcome

    def detach(
        self,
        slots: Sequence[SlotDefinition],
        current: Mapping[str, SlotValue],
        slot_name: str,
        reference_ids: Sequence[str] | None = None,
    ) -> DetachOutcome:
        """Remove references from a slot without touching the remote store.

        The caller persists ``slots`` first and only then calls :meth:`retire`
        with ``detached`` so the document never points at a deleted object.
        """
        definitions = {slot.name: slot for slot in slots}
        if slot_name not in definitions:
            raise UnknownSlotError(f"unknown media slot '{slot_name}'")
        definition = definitions[slot_name]
        result: dict[str, SlotValue] = {
            name: list(value) if isinstance(value, list) else value
            for name, value in current.items()
        }
        value = result.get(slot_name, definition.empty_value())
        outcome = DetachOutcome(slots=result)

        if definition.is_list:
            items = list(value or [])
            wanted = set(reference_ids) if reference_ids is not None else None
            kept = [item for item in items if wanted is not None and item.reference_id not in wanted]
            outcome.detached = [
                (slot_name, item) for item in items if wanted is None or item.reference_id in wanted
            ]
            result[slot_name] = kept
        else:
            if isinstance(value, MediaReference) and (
                reference_ids is None or value.reference_id in reference_ids
            ):
                outcome.detached = [(slot_name, value)]
                result[slot_name] = None
        return outcome

    async def retire(
        self, detached: Sequence[tuple[str, MediaReference]], *, reason: str = "detached"
    ) -> list[RetirementError]:
        return await self._retire([_Retirement(slot, ref, reason) for slot, ref in detached], [])

    async def delete_all(self, current: Mapping[str, SlotValue]) -> CascadeReport:
        """Attempt deletion of every bound reference; never raises on store errors."""
        targets = [
            (name, reference)
            for name, value in current.items()
            for reference in iter_references(value)
        ]
        report = CascadeReport(attempted=len(targets))
        results = await self._bounded(
            [lambda ref=reference: self._delete(ref) for _, reference in targets]
        )
        for (name, reference), error in zip(targets, results):
            if error is None:
                report.deleted.append(reference)
                continue
            report.errors.append(
                CascadeDeletionError(slot=name, reference=reference, message=str(error))
            )
            logger.warning(
                "media.cascade.delete_failed",
                slot=name,
                reference_id=reference.reference_id,
                error=str(error),
            )
        return report

    async def _retire(
        self, retirements: Sequence[_Retirement], retired: list[MediaReference]
    ) -> list[RetirementError]:
        results = await self._bounded(
            [lambda item=item: self._delete(item.reference) for item in retirements]
        )
        errors: list[RetirementError] = []
        for item, error in zip(retirements, results):
            if error is None:
                retired.append(item.reference)
                continue
            errors.append(
                RetirementError(
                    slot=item.slot,
                    reference=item.reference,
                    message=str(error),
                    reason=item.reason,
                )
            )
            logger.warning(
                "media.retire.failed",
                slot=item.slot,
                reference_id=item.reference.reference_id,
                reason=item.reason,
                error=str(error),
            )
        return errors

    async def _upload(self, payload: IncomingFile, folder: str) -> MediaReference | StoreError:
        try:
            return await self._store.upload(payload.content, payload.filename, folder)
        except StoreError as exc:
            return exc

    async def _delete(self, reference: MediaReference) -> StoreError | None:
        try:
            await self._store.delete(reference.reference_id)
        except StoreError as exc:
            return exc
        return None

    async def _bounded(self, factories: Sequence[Callable[[], Awaitable[T]]]) -> list[T]:
        if not factories:
            return []
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(factory: Callable[[], Awaitable[T]]) -> T:
            async with semaphore:
                return await factory()

        return list(await asyncio.gather(*(run(factory) for factory in factories)))

    @staticmethod
    def _check_request(
        definitions: Mapping[str, SlotDefinition],
        requested: Mapping[str, list[IncomingFile]],
    ) -> None:
        for name, files in requested.items():
            definition = definitions.get(name)
            if definition is None:
                raise UnknownSlotError(f"unknown media slot '{name}'")
            if not definition.is_list and len(files) > 1:
                raise SlotCardinalityError(
                    f"slot '{name}' accepts a single file, got {len(files)}"
                )
