"""
Aspect Handlers - The fetch/convert/publish sequence behind each aspect.

An aspect names one kind of requested work. Every aspect follows the same
shape, so each one is described by an AspectDefinition and executed by the
generic AspectHandler:

  1. Fetch the parent collection filtered by the aspect's key.
  2. Publish the parent records, even when there are none.
  3. For each dependent link, read the navigation URI from the FIRST parent
     record, fetch it, convert it and publish it. Dependents hang off the
     parent record, not off each other. A record without a given link
     skips that dependent.

An empty parent result with dependents pending raises EmptyParentResultError
after the parent has been published.

Defined aspects:

  ContractCollection      (by id)       ContractCollection filtered by ID
      -> ContractExternalPriceComponentData, ContractItemData, ContractPartyData
  ContractItemCollection  (by item id)  ContractItemCollection filtered by ID
      -> ContractItemExternalPriceComponentData
  ContractName            (by name)     ContractCollection filtered by substringof(Name)
      -> same dependents as ContractCollection

Failure policy: run() raises on the first error. execute() logs it and
returns False, so a failing aspect stops only its own remaining steps.
Messages already published stay published.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import ContractReadsError, EmptyParentResultError
from .odata_queries import FILTER_BY_ID, FILTER_BY_NAME
from .response_converter import convert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependentStep:
    link_field: str
    resource: str
    function: str


@dataclass(frozen=True)
class AspectDefinition:
    name: str
    key_field: str
    collection: str
    filter_kind: str
    resource: str
    function: str
    dependents: Tuple[DependentStep, ...] = ()


CONTRACT_DEPENDENTS = (
    DependentStep(
        "to_contract_external_price_component",
        "ContractExternalPriceComponent",
        "ContractExternalPriceComponentData",
    ),
    DependentStep("to_contract_item", "ContractItem", "ContractItemData"),
    DependentStep("to_contract_party", "ContractParty", "ContractPartyData"),
)

ASPECTS: Dict[str, AspectDefinition] = {
    "ContractCollection": AspectDefinition(
        name="ContractCollection",
        key_field="primary_id",
        collection="ContractCollection",
        filter_kind=FILTER_BY_ID,
        resource="ContractCollection",
        function="ContractCollectionData",
        dependents=CONTRACT_DEPENDENTS,
    ),
    "ContractItemCollection": AspectDefinition(
        name="ContractItemCollection",
        key_field="item_id",
        collection="ContractItemCollection",
        filter_kind=FILTER_BY_ID,
        resource="ContractItemCollection",
        function="ContractItemCollectionData",
        dependents=(
            DependentStep(
                "to_contract_item_external_price_component",
                "ContractItemExternalPriceComponent",
                "ContractItemExternalPriceComponentData",
            ),
        ),
    ),
    "ContractName": AspectDefinition(
        name="ContractName",
        key_field="name",
        collection="ContractCollection",
        filter_kind=FILTER_BY_NAME,
        resource="ContractCollection",
        function="ContractNameData",
        dependents=CONTRACT_DEPENDENTS,
    ),
}

ASPECT_ALIASES = {
    "by id": "ContractCollection",
    "by item id": "ContractItemCollection",
    "by name": "ContractName",
}


def resolve_aspect(name: str):
    """Return the AspectDefinition for name or one of its aliases, else None."""
    return ASPECTS.get(ASPECT_ALIASES.get(name, name))


class AspectHandler:
    """Runs one aspect against SAP and publishes every step's records.

    Attributes:
        definition: What to fetch and how to tag it.
        client: SAPAPIClient (or anything with fetch/fetch_collection).
        publisher: Object with send(queue, payload).
        queue: Outbound queue every message goes to.
    """

    def __init__(self, definition: AspectDefinition, client, publisher, queue: str):
        self.definition = definition
        self.client = client
        self.publisher = publisher
        self.queue = queue

    def run(self, key: str) -> None:
        """Execute the aspect for key, raising the first error encountered."""
        d = self.definition
        data = self.client.fetch_collection(d.collection, d.filter_kind, key)
        records = convert(d.resource, data)
        self._publish(d.function, records)

        if not d.dependents:
            return
        if not records:
            raise EmptyParentResultError(d.function, key)

        parent = records[0]
        for step in d.dependents:
            url = getattr(parent, step.link_field)
            if not url:
                logger.warning("%s(%r): no %s link on first record, skipping %s",
                               d.name, key, step.link_field, step.function)
                continue
            dependent = convert(step.resource, self.client.fetch(url))
            self._publish(step.function, dependent)

    def execute(self, key: str) -> bool:
        """Run the aspect and log instead of raising. Returns True on success."""
        try:
            self.run(key)
        except ContractReadsError as e:
            logger.error("%s(%r) aborted: %s", self.definition.name, key, e)
            return False
        return True

    def _publish(self, function: str, records: list) -> None:
        self.publisher.send(self.queue, {"message": records, "function": function})
        logger.info("Published %d %s record(s) to %s", len(records), function, self.queue)
        logger.debug("%s: %s", function, records)
