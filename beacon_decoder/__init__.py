# Beacon decoder: resolve tracking requests to their vendor and decode
# their parameters.  Re-exports the public API; prefer importing from the
# specific submodule (e.g. beacon_decoder.engine.registry) inside the package.

from beacon_decoder.engine.namespace_stack import stack_namespaces as stack_namespaces
from beacon_decoder.engine.normalizer import decode_body as decode_body, flatten as flatten
from beacon_decoder.engine.pipeline import (
    ParamCollection as ParamCollection,
    decode as decode,
    make_field as make_field,
)
from beacon_decoder.engine.registry import (
    FALLBACK_CAPABILITY as FALLBACK_CAPABILITY,
    ProviderRegistry as ProviderRegistry,
)
from beacon_decoder.models.capability import (
    Capability as Capability,
    Category as Category,
    ParamSpec as ParamSpec,
    ProviderTables as ProviderTables,
)
from beacon_decoder.models.results import (
    ColumnRoles as ColumnRoles,
    GroupSpec as GroupSpec,
    ParsedField as ParsedField,
    ParseResult as ParseResult,
    VendorInfo as VendorInfo,
)
from beacon_decoder.providers import (
    build_registry as build_registry,
    capture_pattern as capture_pattern,
    get_registry as get_registry,
)
from beacon_decoder.utils.errors import (
    BeaconDecoderError as BeaconDecoderError,
    DuplicateProviderError as DuplicateProviderError,
    UrlParseError as UrlParseError,
)
