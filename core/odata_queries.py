"""
OData Query Definitions - Collection URLs and $filter expressions for C4C.

Two filter kinds are supported:

  by id      ID eq '<value>'                 exact match on the ID property
  by name    substringof('<value>', Name)    OData v2 substring match on Name

Values are inserted as-is. The whole query string is percent-encoded, but a
literal single quote inside a value still ends the OData string literal early,
so callers must not pass values containing "'".

Collection URLs have the shape:
    {base_url}/c4codataapi/{CollectionName}

Pipeline context:
  Used by SAPAPIClient.fetch_collection() for the parent fetch of every aspect.
  Dependent fetches use the navigation URIs returned by SAP and need no query.
"""

from urllib.parse import urlencode

FILTER_BY_ID = "by id"
FILTER_BY_NAME = "by name"

ODATA_SERVICE = "c4codataapi"

_FILTER_TEMPLATES = {
    FILTER_BY_ID: "ID eq '{value}'",
    FILTER_BY_NAME: "substringof('{value}', Name)",
}


def build_filter(kind: str, value: str) -> str:
    """Build the $filter expression for a filter kind.

    Raises:
        ValueError: If kind is not one of FILTER_BY_ID or FILTER_BY_NAME.
    """
    try:
        template = _FILTER_TEMPLATES[kind]
    except KeyError:
        raise ValueError(f"Unsupported filter kind: {kind!r}") from None
    return template.format(value=value)


def build_query(kind: str, value: str) -> str:
    """Return the URL-encoded query string carrying the $filter expression."""
    return urlencode({"$filter": build_filter(kind, value)})


def collection_url(base_url: str, collection: str) -> str:
    return "/".join([base_url.rstrip("/"), ODATA_SERVICE, collection])
