"""Vision oracle extraction: prompt/schema, gateway and response coercion."""

from .gateway import ExtractionGateway, image_part, to_data_url
from .parser import coerce_extraction, parse_response_text

__all__ = [
    "ExtractionGateway",
    "image_part",
    "to_data_url",
    "coerce_extraction",
    "parse_response_text",
]
