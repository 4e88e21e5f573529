"""Host lifecycle across the directory, DNS and DHCP backends.

Adding a host runs a read-only pre-flight chain first; the first failing
check raises and nothing has been written anywhere. Only then are the
backends written in a fixed order. Writes are best-effort: a failed step is
recorded in the returned ``OperationResult`` and the remaining steps still
run, with no rollback. Removal deletes from every backend independently and
reports each deletion.

Every filter table change is followed by an allow-list rebuild.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable

from hostreg.adapters.base import (
    DirectoryClient,
    FilterClient,
    NameRecordClient,
    ReservationClient,
    ZoneInspector,
)
from hostreg.config import Settings
from hostreg.exceptions import (
    AppError,
    ConfirmationDeclinedError,
    ConflictError,
    NotFoundError,
    PoolExhaustedError,
    PreconditionError,
    ValidationError,
)
from hostreg.models.directory import IdentityObject
from hostreg.models.host import (
    HostRequest,
    LaptopSlot,
    canonical_mac,
    is_dotted_quad,
    reverse_zone_of,
    scope_of,
    simple_name,
)
from hostreg.models.result import OperationResult
from hostreg.services.allow_list import AllowListBuilder
from hostreg.services.locks import HostLockManager, lock_key
from hostreg.services.prompts import Prompt, select_container

logger = logging.getLogger(__name__)


class HostLifecycleOrchestrator:
    def __init__(
        self,
        settings: Settings,
        *,
        directory: DirectoryClient,
        names: NameRecordClient,
        reservations: ReservationClient,
        filters: FilterClient,
        zones: ZoneInspector,
        allow_list: AllowListBuilder,
        prompt: Prompt,
        locks: HostLockManager | None = None,
        today: Callable[[], date] = date.today,
    ):
        self._settings = settings
        self._directory = directory
        self._names = names
        self._reservations = reservations
        self._filters = filters
        self._zones = zones
        self._allow_list = allow_list
        self._prompt = prompt
        self._locks = locks or HostLockManager()
        self._today = today

    # -- Add ------------------------------------------------------------------

    def add_host(self, request: HostRequest, *, prompt: Prompt | None = None) -> OperationResult:
        """Register a new host in every backend.

        Raises ValidationError, ConflictError or PreconditionError before any
        write. Returns the per-step outcome of the write phase.
        """
        mac = canonical_mac(request.hardware_address)

        if request.laptop_mode:
            return self.allocate_laptop_slot(request.name, mac, prompt=prompt)

        address = (request.address or "").strip()
        if not is_dotted_quad(address):
            raise ValidationError(f"Invalid IPv4 address: {request.address!r}", {"address": request.address})

        name = request.name.lower()
        fqdn = self._settings.fqdn(name)
        with self._locks.hold(lock_key("name", name), lock_key("address", address), lock_key("mac", mac)):
            stub, ptr_present = self._preflight(name, fqdn, mac, address)
            return self._provision(name, fqdn, mac, address, stub, ptr_present, prompt or self._prompt)

    def _preflight(self, name: str, fqdn: str, mac: str, address: str) -> tuple[bool, bool]:
        """Run the read-only checks.

        Returns ``(stub, ptr_present)``: whether the reverse zone is a stub, and
        whether the PTR record already names *fqdn*.
        """
        current = self._names.resolve_forward(name)
        if current is not None:
            raise ConflictError(f"{name} already resolves to {current}", owner=name)

        ptr = self._names.resolve_reverse(address)
        if ptr and ptr != address and ptr not in (name, fqdn):
            raise ConflictError(f"{address} already resolves to {ptr}", owner=ptr)

        if self._directory.exists(name):
            raise ConflictError(f"Directory object {name} already exists", owner=name)

        for entry in self._filters.dump_all():
            if entry.disposition == "allow" and entry.hardware_address == mac:
                raise ConflictError(
                    f"{mac} already has an allow filter entry ({entry.description or 'no description'})",
                    owner=entry.description or None,
                )

        reverse_zone = reverse_zone_of(address)
        stub = self._zones.is_stub_zone(reverse_zone)
        if stub:
            if not ptr or ptr == address:
                raise PreconditionError(
                    f"{reverse_zone} is a stub zone: create the PTR record {address} -> {fqdn} "
                    "in the external name system first",
                    {"address": address, "expected": fqdn},
                )
            if ptr != fqdn:
                raise PreconditionError(
                    f"PTR record for {address} points to {ptr}, expected {fqdn}",
                    {"address": address, "expected": fqdn, "actual": ptr},
                )
        logger.info("Pre-flight passed for %s (%s, %s, stub=%s)", name, address, mac, stub)
        return stub, ptr == fqdn

    def _provision(
        self, name: str, fqdn: str, mac: str, address: str, stub: bool, ptr_present: bool, prompt: Prompt
    ) -> OperationResult:
        result = OperationResult(operation="add-host", target=name)
        scope = scope_of(address)
        reverse_zone = reverse_zone_of(address)
        # The external PTR already names the FQDN, so the reservation has to match it.
        bound_name = fqdn if stub else name

        self._step(result, "filter", lambda: self._filters.add_allow(mac, name), f"allow {mac}")
        self._step(
            result,
            "reservation",
            lambda: self._reservations.create(scope, address, mac, bound_name, name),
            f"{address} -> {mac} as {bound_name} in {scope}",
        )
        self._step(
            result,
            "a-record",
            lambda: self._names.create_a(fqdn, address, self._settings.domain),
            f"{fqdn} -> {address}",
        )
        if stub:
            result.record("ptr-record", "skipped", f"{reverse_zone} is a stub zone, PTR is external")
        elif ptr_present:
            result.record("ptr-record", "skipped", f"{address} already points to {fqdn}")
        else:
            self._step(
                result,
                "ptr-record",
                lambda: self._names.create_ptr(fqdn, address, reverse_zone),
                f"{address} -> {fqdn} in {reverse_zone}",
            )
        self._create_identity(result, name, fqdn, laptop_mode=False, prompt=prompt)
        self._rebuild(result)
        return result

    # -- Remove ---------------------------------------------------------------

    def remove_host(
        self, name: str, require_confirmation: bool = True, *, prompt: Prompt | None = None
    ) -> OperationResult:
        """Remove a host from every backend.

        Raises ValidationError for a malformed or qualified name, NotFoundError
        if the name does not resolve and ConfirmationDeclinedError if the
        prompt refuses; otherwise every deletion is attempted and reported,
        whether or not the others worked.
        """
        prompt = prompt or self._prompt
        name = simple_name(name)
        fqdn = self._settings.fqdn(name)

        address = self._names.resolve_forward(name)
        if address is None:
            raise NotFoundError(f"{name} does not resolve to an address", {"name": name})

        result = OperationResult(operation="remove-host", target=name)
        scope = scope_of(address)
        reverse_zone = reverse_zone_of(address)

        with self._locks.hold(lock_key("name", name), lock_key("address", address)):
            mac = self._find_hardware_address(result, scope, address)

            if require_confirmation and not prompt.confirm(
                f"Remove {fqdn} ({address}, {mac or 'unknown hardware address'}) from directory, DNS and DHCP?"
            ):
                raise ConfirmationDeclinedError(f"Removal of {name} was not confirmed")

            self._delete_step(result, "a-record", lambda: self._names.delete_a(fqdn, self._settings.domain))
            self._delete_step(result, "ptr-record", lambda: self._delete_local_ptr(address, reverse_zone))
            self._delete_step(result, "reservation", lambda: self._reservations.delete(scope, address))
            self._delete_step(result, "identity", lambda: self._directory.delete_recursive(name))
            if mac:
                self._delete_step(result, "filter", lambda: self._filters.delete_entry(mac))
            else:
                result.record("filter", "skipped", "hardware address unknown")
                logger.warning("Skipping filter cleanup for %s: hardware address unknown", name)
            self._rebuild(result)
        return result

    def _find_hardware_address(self, result: OperationResult, scope: str, address: str) -> str | None:
        try:
            clients = self._reservations.list_clients(scope)
        except AppError as exc:
            result.record("client-lookup", "failed", exc.message)
            logger.error("Client lookup in scope %s failed: %s", scope, exc.message)
            return None
        for client in clients:
            if client.address == address:
                result.record("client-lookup", "ok", f"{address} -> {client.hardware_address}")
                return client.hardware_address
        result.record("client-lookup", "not_found", f"{address} not in scope {scope}")
        return None

    def _delete_local_ptr(self, address: str, reverse_zone: str) -> bool | None:
        if self._zones.is_stub_zone(reverse_zone):
            return None
        return self._names.delete_ptr(address, reverse_zone)

    # -- Laptop pool ----------------------------------------------------------

    def allocate_laptop_slot(
        self, name: str, hardware_address: str, *, prompt: Prompt | None = None
    ) -> OperationResult:
        """Bind the lowest free loaner slot to *hardware_address*.

        Raises PoolExhaustedError, without writing anything, when every slot
        name resolves to a live host.
        """
        mac = canonical_mac(hardware_address)
        name = simple_name(name)

        with self._locks.hold(lock_key("pool", "laptop"), lock_key("name", name), lock_key("mac", mac)):
            slot = self._free_slot()
            expires = self._today() + timedelta(days=self._settings.laptop_lease_days)
            description = f"{name} expires {expires:%Y-%m-%d}"
            scope = scope_of(slot.address)

            result = OperationResult(operation="allocate-laptop", target=name)
            result.record("slot", "ok", f"{slot.name} ({slot.address})")
            self._step(result, "filter", lambda: self._filters.add_allow(mac, description), description)
            self._delete_step(
                result, "stale-reservation", lambda: self._reservations.delete(scope, slot.address)
            )
            self._step(
                result,
                "reservation",
                lambda: self._reservations.create(scope, slot.address, mac, slot.name, description),
                f"{slot.address} -> {mac} as {slot.name}",
            )
            self._create_identity(
                result, name, self._settings.fqdn(name), laptop_mode=True, prompt=prompt or self._prompt
            )
            self._rebuild(result)
        return result

    def _free_slot(self) -> LaptopSlot:
        for slot in self._settings.laptop_slots:
            if self._names.resolve_forward(slot.name) is None:
                return slot
            logger.debug("Laptop slot %s is in use", slot.name)
        raise PoolExhaustedError(f"All {len(self._settings.laptop_slots)} laptop slots are in use")

    # -- Other operations -----------------------------------------------------

    def rebuild_allow_list(self) -> list[str]:
        return self._allow_list.rebuild()

    def list_hosts(self, os_filter: str | None = None) -> list[IdentityObject]:
        return self._directory.list_hosts(os_filter)

    # -- Step helpers ---------------------------------------------------------

    def _create_identity(
        self, result: OperationResult, name: str, fqdn: str, *, laptop_mode: bool, prompt: Prompt
    ) -> None:
        try:
            container, warning = select_container(
                self._directory.list_containers(),
                laptop_mode,
                prompt,
                laptop_marker=self._settings.laptop_marker,
                temporary_container=self._settings.temporary_container,
                fallback_container=self._settings.fallback_container,
            )
            self._directory.create(name, container, fqdn)
        except AppError as exc:
            result.record("identity", "failed", exc.message)
            logger.error("identity for %s failed: %s", name, exc.message)
            return
        detail = f"{name} in {container}"
        if warning:
            detail = f"{detail}; {warning}"
        result.record("identity", "ok", detail)
        logger.info("identity: %s", detail)

    def _rebuild(self, result: OperationResult) -> None:
        self._step(result, "allow-list", lambda: f"{len(self._allow_list.rebuild())} entries")

    @staticmethod
    def _step(result: OperationResult, step: str, action: Callable[[], object], detail: str = "") -> None:
        try:
            returned = action()
        except AppError as exc:
            result.record(step, "failed", exc.message)
            logger.error("%s for %s failed: %s", step, result.target, exc.message)
            return
        if not detail and isinstance(returned, str):
            detail = returned
        result.record(step, "ok", detail)
        logger.info("%s for %s: %s", step, result.target, detail or "ok")

    @staticmethod
    def _delete_step(result: OperationResult, step: str, action: Callable[[], bool | None]) -> None:
        try:
            deleted = action()
        except AppError as exc:
            result.record(step, "failed", exc.message)
            logger.error("Deleting %s for %s failed: %s", step, result.target, exc.message)
            return
        if deleted is None:
            result.record(step, "skipped", "managed externally")
            logger.info("Skipped %s for %s: managed externally", step, result.target)
        elif deleted:
            result.record(step, "deleted")
            logger.info("Deleted %s for %s", step, result.target)
        else:
            result.record(step, "not_found")
            logger.warning("%s for %s not found", step, result.target)
