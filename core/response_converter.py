"""
Response Converter - Turns raw C4C OData payloads into typed contract records.

C4C answers OData v2 JSON. Collections and to-many navigations look like:

    {
      "d": {
        "results": [
          {
            "ObjectID": "00163E0A...",
            "ID": "C100",
            "Name": "Service Agreement",
            ...
            "ContractItem": {
              "__deferred": {"uri": "https://.../ContractCollection('00163E0A...')/ContractItem"}
            }
          }
        ]
      }
    }

A to-one navigation returns a single object under "d" instead of a
"results" list, and OData v4 style payloads put the rows under "value".
All three shapes are accepted.

Each record type is a frozen dataclass. Plain fields are read from the OData
property named in the field's "odata" metadata; fields flagged as links hold
the "__deferred" URI of a navigation property ("" when SAP did not send one,
for example when the navigation was expanded inline).

Error handling:
  - A body that is not JSON, not a JSON object, or has no recognizable rows
    raises ConversionError.
  - An OData error document ({"error": {"message": {"value": ...}}}) raises
    ConversionError carrying SAP's message. This is where non-2xx answers
    from SAP surface, since the client does not check status codes.
  - A navigation property that is not an object, or whose "__deferred"
    block lacks a string "uri", raises ConversionError.

Pipeline context:
  Each aspect handler converts every fetched body through convert() using the
  resource name of the step, then publishes the resulting records.
"""

import json
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

from .errors import ConversionError

logger = logging.getLogger(__name__)


def _prop(odata_name: str):
    return field(default=None, metadata={"odata": odata_name})


def _link(odata_name: str):
    return field(default="", metadata={"odata": odata_name, "link": True})


@dataclass(frozen=True)
class ContractCollection:
    object_id: Optional[str] = _prop("ObjectID")
    id: Optional[str] = _prop("ID")
    name: Optional[str] = _prop("Name")
    contract_type_code: Optional[str] = _prop("ContractTypeCode")
    contract_type_code_text: Optional[str] = _prop("ContractTypeCodeText")
    life_cycle_status_code: Optional[str] = _prop("LifeCycleStatusCode")
    life_cycle_status_code_text: Optional[str] = _prop("LifeCycleStatusCodeText")
    buyer_party_id: Optional[str] = _prop("BuyerPartyID")
    sales_organisation_id: Optional[str] = _prop("SalesOrganisationID")
    distribution_channel_code: Optional[str] = _prop("DistributionChannelCode")
    division_code: Optional[str] = _prop("DivisionCode")
    validity_start_date: Optional[str] = _prop("ValidityStartDate")
    validity_end_date: Optional[str] = _prop("ValidityEndDate")
    net_amount: Optional[str] = _prop("NetAmount")
    net_amount_currency_code: Optional[str] = _prop("NetAmountCurrencyCode")
    creation_date_time: Optional[str] = _prop("CreationDateTime")
    last_change_date_time: Optional[str] = _prop("LastChangeDateTime")
    to_contract_external_price_component: str = _link("ContractExternalPriceComponent")
    to_contract_item: str = _link("ContractItem")
    to_contract_party: str = _link("ContractParty")


@dataclass(frozen=True)
class ContractExternalPriceComponent:
    object_id: Optional[str] = _prop("ObjectID")
    parent_object_id: Optional[str] = _prop("ParentObjectID")
    price_component_type_code: Optional[str] = _prop("PriceComponentTypeCode")
    price_component_type_code_text: Optional[str] = _prop("PriceComponentTypeCodeText")
    rate_amount: Optional[str] = _prop("RateAmount")
    rate_amount_currency_code: Optional[str] = _prop("RateAmountCurrencyCode")
    calculated_amount: Optional[str] = _prop("CalculatedAmount")
    calculated_amount_currency_code: Optional[str] = _prop("CalculatedAmountCurrencyCode")


@dataclass(frozen=True)
class ContractItem:
    object_id: Optional[str] = _prop("ObjectID")
    parent_object_id: Optional[str] = _prop("ParentObjectID")
    id: Optional[str] = _prop("ID")
    product_id: Optional[str] = _prop("ProductID")
    description: Optional[str] = _prop("Description")
    quantity: Optional[str] = _prop("Quantity")
    quantity_unit_code: Optional[str] = _prop("QuantityUnitCode")
    net_amount: Optional[str] = _prop("NetAmount")
    net_amount_currency_code: Optional[str] = _prop("NetAmountCurrencyCode")
    validity_start_date: Optional[str] = _prop("ValidityStartDate")
    validity_end_date: Optional[str] = _prop("ValidityEndDate")


@dataclass(frozen=True)
class ContractParty:
    object_id: Optional[str] = _prop("ObjectID")
    parent_object_id: Optional[str] = _prop("ParentObjectID")
    party_id: Optional[str] = _prop("PartyID")
    party_name: Optional[str] = _prop("PartyName")
    role_code: Optional[str] = _prop("RoleCode")
    role_code_text: Optional[str] = _prop("RoleCodeText")
    main_indicator: Optional[bool] = _prop("MainIndicator")


@dataclass(frozen=True)
class ContractItemCollection:
    object_id: Optional[str] = _prop("ObjectID")
    parent_object_id: Optional[str] = _prop("ParentObjectID")
    id: Optional[str] = _prop("ID")
    contract_id: Optional[str] = _prop("ContractID")
    product_id: Optional[str] = _prop("ProductID")
    description: Optional[str] = _prop("Description")
    quantity: Optional[str] = _prop("Quantity")
    quantity_unit_code: Optional[str] = _prop("QuantityUnitCode")
    net_amount: Optional[str] = _prop("NetAmount")
    net_amount_currency_code: Optional[str] = _prop("NetAmountCurrencyCode")
    to_contract_item_external_price_component: str = _link("ContractItemExternalPriceComponent")


@dataclass(frozen=True)
class ContractItemExternalPriceComponent:
    object_id: Optional[str] = _prop("ObjectID")
    parent_object_id: Optional[str] = _prop("ParentObjectID")
    price_component_type_code: Optional[str] = _prop("PriceComponentTypeCode")
    price_component_type_code_text: Optional[str] = _prop("PriceComponentTypeCodeText")
    rate_amount: Optional[str] = _prop("RateAmount")
    rate_amount_currency_code: Optional[str] = _prop("RateAmountCurrencyCode")
    calculated_amount: Optional[str] = _prop("CalculatedAmount")
    calculated_amount_currency_code: Optional[str] = _prop("CalculatedAmountCurrencyCode")


def _deferred_uri(value: Any, odata_name: str) -> str:
    # Absent or inline-expanded navigations carry no link.
    if value is None:
        return ""
    if not isinstance(value, dict):
        raise ConversionError(f"convert error: navigation {odata_name} is not an object")
    if "__deferred" not in value:
        return ""
    deferred = value["__deferred"]
    uri = deferred.get("uri") if isinstance(deferred, dict) else None
    if not isinstance(uri, str):
        raise ConversionError(f"convert error: navigation {odata_name} has a malformed __deferred block")
    return uri


def _build_record(record_cls, row: Dict[str, Any]):
    values = {}
    for f in fields(record_cls):
        odata_name = f.metadata["odata"]
        if f.metadata.get("link"):
            values[f.name] = _deferred_uri(row.get(odata_name), odata_name)
        else:
            values[f.name] = row.get(odata_name)
    return record_cls(**values)


def _extract_rows(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise ConversionError(f"convert error: expected a JSON object, got {type(payload).__name__}")

    if "error" in payload:
        error = payload["error"]
        if isinstance(error, dict):
            message = error.get("message", "")
            if isinstance(message, dict):
                message = message.get("value", "")
            error = f"{error.get('code', '')} {message}".strip()
        raise ConversionError(f"convert error: SAP returned an error: {error}")

    if "d" in payload:
        body = payload["d"]
        if isinstance(body, dict):
            rows = body["results"] if "results" in body else [body]
        else:
            rows = body
    elif "value" in payload:
        rows = payload["value"]
    else:
        raise ConversionError("convert error: payload has neither 'd' nor 'value'")

    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ConversionError("convert error: rows are not a list of objects")
    return rows


def _converter(record_cls) -> Callable[[bytes], list]:
    def convert_payload(data: bytes) -> list:
        try:
            payload = json.loads(data)
        except (ValueError, TypeError) as e:
            raise ConversionError(f"convert error: {e}") from e
        records = [_build_record(record_cls, row) for row in _extract_rows(payload)]
        logger.debug("Converted %d %s record(s)", len(records), record_cls.__name__)
        return records

    convert_payload.__name__ = f"convert_{record_cls.__name__}"
    convert_payload.__doc__ = f"Convert an OData payload into a list of {record_cls.__name__}."
    return convert_payload


RECORD_TYPES = {
    cls.__name__: cls
    for cls in (
        ContractCollection,
        ContractExternalPriceComponent,
        ContractItem,
        ContractParty,
        ContractItemCollection,
        ContractItemExternalPriceComponent,
    )
}

CONVERTERS: Dict[str, Callable[[bytes], list]] = {
    name: _converter(cls) for name, cls in RECORD_TYPES.items()
}


def convert(resource: str, data: bytes) -> list:
    """Convert data using the converter registered for resource.

    Raises:
        KeyError: If no converter is registered under resource.
        ConversionError: If the payload cannot be converted.
    """
    return CONVERTERS[resource](data)
