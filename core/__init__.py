"""
Core package - The contract reads pipeline.

  orchestrator.py        Concurrent fan-out of aspect handlers
  aspect_handlers.py     Parent fetch -> publish -> dependent fetches, per aspect
  sap_client.py          Authenticated GETs against the C4C OData API
  odata_queries.py       Collection URLs and $filter expressions
  response_converter.py  OData JSON -> typed contract records
  publisher.py           Redis and JSON-file outbound publishers
  output_manager.py      Timestamped dry-run output folders
  errors.py              Exception hierarchy
"""

from .orchestrator import ContractOrchestrator, WorkRequest
from .aspect_handlers import ASPECTS, AspectHandler, resolve_aspect
from .sap_client import SAPAPIClient
from .odata_queries import FILTER_BY_ID, FILTER_BY_NAME, build_filter, build_query, collection_url
from .response_converter import CONVERTERS, convert
from .publisher import JsonFilePublisher, RedisQueuePublisher, build_publisher
from .output_manager import OutputManager
from .errors import (
    ContractReadsError,
    ConfigurationError,
    ConversionError,
    EmptyParentResultError,
    PublishError,
    SAPRequestError,
)
