"""
Product unit assignment.

Each product links to one or more units of measure, exactly one of
which is primary (the pricing base). Primary moves are driven by an
explicit transition table keyed by (event, link state):

    event              no_units     not_attached     secondary   primary+others           only_unit
    attach             add primary  add secondary    duplicate   duplicate                duplicate
    attach_as_primary  add primary  add + promote    duplicate   duplicate                duplicate
    set_primary        noop         noop             promote     noop                     noop
    detach             noop         noop             remove      remove + promote next    reject

ProductUnitService persists the resulting links in product_units_mapping
and mirrors the primary unit into products.main_unit_id.
"""

from enum import Enum
from decimal import Decimal
from typing import Optional
import structlog

from config import get_supabase_client
from models.unit import (
    UnitResponse,
    ProductUnitLink,
    ProductUnitsResponse,
)
from services.unit_service import get_unit_service
from services.product_service import get_product_service
from services.conversion_service import get_conversion_engine
from exceptions import (
    UnitAlreadyAttachedError,
    LastUnitRemovalError,
    UnitAssignmentInvariantError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)


class UnitEvent(str, Enum):
    """Operations on a product's unit links."""
    ATTACH = "attach"
    ATTACH_AS_PRIMARY = "attach_as_primary"
    SET_PRIMARY = "set_primary"
    DETACH = "detach"


class LinkState(str, Enum):
    """Where the target unit stands among the product's links."""
    NO_UNITS = "no_units"
    NOT_ATTACHED = "not_attached"
    SECONDARY = "secondary"
    PRIMARY_WITH_OTHERS = "primary_with_others"
    ONLY_UNIT = "only_unit"


class LinkAction(str, Enum):
    """What a transition does to the links."""
    ADD_AS_PRIMARY = "add_as_primary"
    ADD_AS_SECONDARY = "add_as_secondary"
    ADD_AND_PROMOTE = "add_and_promote"
    PROMOTE = "promote"
    REMOVE = "remove"
    REMOVE_AND_PROMOTE_NEXT = "remove_and_promote_next"
    REJECT_DUPLICATE = "reject_duplicate"
    REJECT_LAST = "reject_last"
    NOOP = "noop"


_ATTACHED_STATES = (LinkState.SECONDARY, LinkState.PRIMARY_WITH_OTHERS, LinkState.ONLY_UNIT)

TRANSITIONS: dict[tuple[UnitEvent, LinkState], LinkAction] = {
    (UnitEvent.ATTACH, LinkState.NO_UNITS): LinkAction.ADD_AS_PRIMARY,
    (UnitEvent.ATTACH, LinkState.NOT_ATTACHED): LinkAction.ADD_AS_SECONDARY,
    **{(UnitEvent.ATTACH, s): LinkAction.REJECT_DUPLICATE for s in _ATTACHED_STATES},

    (UnitEvent.ATTACH_AS_PRIMARY, LinkState.NO_UNITS): LinkAction.ADD_AS_PRIMARY,
    (UnitEvent.ATTACH_AS_PRIMARY, LinkState.NOT_ATTACHED): LinkAction.ADD_AND_PROMOTE,
    **{(UnitEvent.ATTACH_AS_PRIMARY, s): LinkAction.REJECT_DUPLICATE for s in _ATTACHED_STATES},

    (UnitEvent.SET_PRIMARY, LinkState.NO_UNITS): LinkAction.NOOP,
    (UnitEvent.SET_PRIMARY, LinkState.NOT_ATTACHED): LinkAction.NOOP,
    (UnitEvent.SET_PRIMARY, LinkState.SECONDARY): LinkAction.PROMOTE,
    (UnitEvent.SET_PRIMARY, LinkState.PRIMARY_WITH_OTHERS): LinkAction.NOOP,
    (UnitEvent.SET_PRIMARY, LinkState.ONLY_UNIT): LinkAction.NOOP,

    (UnitEvent.DETACH, LinkState.NO_UNITS): LinkAction.NOOP,
    (UnitEvent.DETACH, LinkState.NOT_ATTACHED): LinkAction.NOOP,
    (UnitEvent.DETACH, LinkState.SECONDARY): LinkAction.REMOVE,
    (UnitEvent.DETACH, LinkState.PRIMARY_WITH_OTHERS): LinkAction.REMOVE_AND_PROMOTE_NEXT,
    (UnitEvent.DETACH, LinkState.ONLY_UNIT): LinkAction.REJECT_LAST,
}


class ProductUnitAssignment:
    """
    In-memory unit links per product, in attachment order.

    Every mutation goes through TRANSITIONS and re-checks the
    invariants: at most one primary per product, and a product with
    any links always has exactly one primary among them.
    """

    def __init__(self):
        self._links: dict[str, list[ProductUnitLink]] = {}

    # ===================
    # READ
    # ===================

    def links(self, product_id: str) -> list[ProductUnitLink]:
        """Copies of the product's links in attachment order."""
        return [link.model_copy() for link in self._links.get(product_id, [])]

    def unit_ids(self, product_id: str) -> list[str]:
        return [link.unit_id for link in self._links.get(product_id, [])]

    def primary_unit_id(self, product_id: str) -> Optional[str]:
        for link in self._links.get(product_id, []):
            if link.is_primary:
                return link.unit_id
        return None

    def state(self, product_id: str, unit_id: str) -> LinkState:
        """Classify the target unit against the product's links."""
        links = self._links.get(product_id, [])
        if not links:
            return LinkState.NO_UNITS

        target = next((link for link in links if link.unit_id == unit_id), None)
        if target is None:
            return LinkState.NOT_ATTACHED
        if len(links) == 1:
            return LinkState.ONLY_UNIT
        if target.is_primary:
            return LinkState.PRIMARY_WITH_OTHERS
        return LinkState.SECONDARY

    # ===================
    # MUTATIONS
    # ===================

    def load(self, product_id: str, links: list[ProductUnitLink]):
        """
        Replace a product's links with persisted ones.

        Stored rows without a primary get their first unit promoted;
        extra primaries after the first are demoted.
        """
        loaded = []
        seen_primary = False
        for link in links:
            is_primary = link.is_primary and not seen_primary
            seen_primary = seen_primary or is_primary
            loaded.append(ProductUnitLink(
                product_id=product_id,
                unit_id=link.unit_id,
                is_primary=is_primary
            ))

        if loaded and not seen_primary:
            logger.warning(
                "product_units_missing_primary",
                product_id=product_id,
                promoted=loaded[0].unit_id
            )
            loaded[0].is_primary = True

        self._links[product_id] = loaded
        self._check_invariants(product_id)

    def attach(
        self,
        product_id: str,
        unit: UnitResponse,
        make_primary: bool = False
    ) -> LinkAction:
        """
        Link a unit to a product.

        The first unit linked to a product is primary regardless of
        make_primary.

        Raises:
            UnitAlreadyAttachedError: If the unit is already linked
        """
        event = UnitEvent.ATTACH_AS_PRIMARY if make_primary else UnitEvent.ATTACH
        return self._apply(event, product_id, unit.id)

    def set_primary(self, product_id: str, unit_id: str) -> LinkAction:
        """Promote an attached unit; no-op when the unit is not attached."""
        return self._apply(UnitEvent.SET_PRIMARY, product_id, unit_id)

    def detach(self, product_id: str, unit_id: str) -> LinkAction:
        """
        Unlink a unit from a product.

        Detaching the primary promotes the first remaining unit.

        Raises:
            LastUnitRemovalError: If it is the product's only unit
        """
        return self._apply(UnitEvent.DETACH, product_id, unit_id)

    def _apply(self, event: UnitEvent, product_id: str, unit_id: str) -> LinkAction:
        state = self.state(product_id, unit_id)
        action = TRANSITIONS[(event, state)]
        links = self._links.setdefault(product_id, [])

        if action == LinkAction.REJECT_DUPLICATE:
            raise UnitAlreadyAttachedError(product_id, unit_id)
        if action == LinkAction.REJECT_LAST:
            raise LastUnitRemovalError(product_id, unit_id)

        if action == LinkAction.ADD_AS_PRIMARY:
            links.append(ProductUnitLink(product_id=product_id, unit_id=unit_id, is_primary=True))
        elif action == LinkAction.ADD_AS_SECONDARY:
            links.append(ProductUnitLink(product_id=product_id, unit_id=unit_id, is_primary=False))
        elif action == LinkAction.ADD_AND_PROMOTE:
            links.append(ProductUnitLink(product_id=product_id, unit_id=unit_id, is_primary=False))
            self._promote(links, unit_id)
        elif action == LinkAction.PROMOTE:
            self._promote(links, unit_id)
        elif action == LinkAction.REMOVE:
            links[:] = [link for link in links if link.unit_id != unit_id]
        elif action == LinkAction.REMOVE_AND_PROMOTE_NEXT:
            links[:] = [link for link in links if link.unit_id != unit_id]
            self._promote(links, links[0].unit_id)

        if not links:
            self._links.pop(product_id, None)

        logger.debug(
            "product_unit_transition",
            product_id=product_id,
            unit_id=unit_id,
            unit_event=event.value,
            state=state.value,
            action=action.value
        )

        self._check_invariants(product_id)
        return action

    @staticmethod
    def _promote(links: list[ProductUnitLink], unit_id: str):
        for link in links:
            link.is_primary = link.unit_id == unit_id

    def _check_invariants(self, product_id: str):
        links = self._links.get(product_id, [])
        if not links:
            return

        primaries = [link for link in links if link.is_primary]
        if len(primaries) != 1:
            raise UnitAssignmentInvariantError(
                product_id,
                f"expected exactly one primary unit, found {len(primaries)}"
            )

        unit_ids = [link.unit_id for link in links]
        if len(set(unit_ids)) != len(unit_ids):
            raise UnitAssignmentInvariantError(product_id, "unit linked twice")


class ProductUnitService:
    """
    Persistence for product unit links.

    Loads a product's links, applies one assignment operation and
    writes back only what changed.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "product_units_mapping"
        self.unit_service = get_unit_service()
        self.product_service = get_product_service()
        self.engine = get_conversion_engine()

    # ===================
    # READ OPERATIONS
    # ===================

    def load(self, product_id: str) -> ProductUnitAssignment:
        """
        Load a product's links into an assignment.

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("loading_product_units", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            logger.error("load_product_units_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        assignment = ProductUnitAssignment()
        assignment.load(product_id, [
            ProductUnitLink(
                product_id=product_id,
                unit_id=row["unit_id"],
                is_primary=bool(row.get("is_main_unit"))
            )
            for row in result.data
        ])
        return assignment

    def get_unit_prices(self, product_id: str) -> ProductUnitsResponse:
        """
        All units of a product with prices derived from the primary unit.

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        product = self.product_service.get_by_id(product_id)
        assignment = self.load(product_id)

        units = []
        for unit_id in assignment.unit_ids(product_id):
            unit = self.unit_service.find(unit_id)
            if unit is None:
                logger.warning("linked_unit_missing", product_id=product_id, unit_id=unit_id)
                continue
            units.append(unit)

        primary_unit_id = assignment.primary_unit_id(product_id)

        return ProductUnitsResponse(
            product_id=product_id,
            primary_unit_id=primary_unit_id,
            units=self.engine.unit_prices(Decimal(product.price), units, primary_unit_id)
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def attach(self, product_id: str, unit_id: str, make_primary: bool = False) -> ProductUnitsResponse:
        """
        Link a unit to a product.

        Raises:
            ProductNotFoundError: If the product doesn't exist
            UnitNotFoundError: If the unit doesn't exist
            UnitAlreadyAttachedError: If the unit is already linked
        """
        logger.info("attaching_product_unit", product_id=product_id, unit_id=unit_id, make_primary=make_primary)

        self.product_service.get_by_id(product_id)
        unit = self.unit_service.get_by_id(unit_id)

        assignment = self.load(product_id)
        before = assignment.links(product_id)
        assignment.attach(product_id, unit, make_primary)
        self._persist(product_id, before, assignment.links(product_id))

        return self.get_unit_prices(product_id)

    def set_primary(self, product_id: str, unit_id: str) -> ProductUnitsResponse:
        """Make an attached unit the product's primary unit."""
        logger.info("setting_primary_unit", product_id=product_id, unit_id=unit_id)

        assignment = self.load(product_id)
        before = assignment.links(product_id)
        action = assignment.set_primary(product_id, unit_id)
        if action != LinkAction.NOOP:
            self._persist(product_id, before, assignment.links(product_id))

        return self.get_unit_prices(product_id)

    def detach(self, product_id: str, unit_id: str) -> ProductUnitsResponse:
        """
        Unlink a unit from a product.

        Raises:
            LastUnitRemovalError: If it is the product's only unit
        """
        logger.info("detaching_product_unit", product_id=product_id, unit_id=unit_id)

        assignment = self.load(product_id)
        before = assignment.links(product_id)
        action = assignment.detach(product_id, unit_id)
        if action != LinkAction.NOOP:
            self._persist(product_id, before, assignment.links(product_id))

        return self.get_unit_prices(product_id)

    def _persist(
        self,
        product_id: str,
        before: list[ProductUnitLink],
        after: list[ProductUnitLink]
    ):
        """
        Write the difference between two link lists.

        Order: demote, insert, promote, mirror to the product, delete.
        The table never holds two primaries, and a removed primary is
        only deleted once its successor is promoted. A failed write
        names its step in the error details.
        """
        old = {link.unit_id: link for link in before}
        new = {link.unit_id: link for link in after}

        old_primary = next((u for u, link in old.items() if link.is_primary), None)
        new_primary = next((u for u, link in new.items() if link.is_primary), None)
        removed = old.keys() - new.keys()
        added = new.keys() - old.keys()

        step = "demote"
        try:
            if old_primary and old_primary != new_primary:
                self._set_flag(product_id, old_primary, False)

            step = "insert"
            for unit_id in added:
                self.db.table(self.table).insert({
                    "product_id": product_id,
                    "unit_id": unit_id,
                    "is_main_unit": new[unit_id].is_primary
                }).execute()

            step = "promote"
            if new_primary and new_primary in old and new_primary != old_primary:
                self._set_flag(product_id, new_primary, True)

            step = "mirror"
            if new_primary != old_primary:
                (
                    self.db.table("products")
                    .update({"main_unit_id": new_primary})
                    .eq("id", product_id)
                    .execute()
                )

            step = "delete"
            for unit_id in removed:
                (
                    self.db.table(self.table)
                    .delete()
                    .eq("product_id", product_id)
                    .eq("unit_id", unit_id)
                    .execute()
                )

        except Exception as e:
            logger.error(
                "persist_product_units_failed",
                product_id=product_id,
                step=step,
                primary_unit_id=new_primary,
                error=str(e)
            )
            raise DatabaseError("update", str(e), details={"step": step, "product_id": product_id})

        logger.info(
            "product_units_updated",
            product_id=product_id,
            added=sorted(added),
            removed=sorted(removed),
            primary_unit_id=new_primary
        )

    def _set_flag(self, product_id: str, unit_id: str, is_primary: bool):
        (
            self.db.table(self.table)
            .update({"is_main_unit": is_primary})
            .eq("product_id", product_id)
            .eq("unit_id", unit_id)
            .execute()
        )


# Singleton instance for convenience
_product_unit_service: Optional[ProductUnitService] = None


def get_product_unit_service() -> ProductUnitService:
    """Get or create ProductUnitService instance."""
    global _product_unit_service
    if _product_unit_service is None:
        _product_unit_service = ProductUnitService()
    return _product_unit_service
