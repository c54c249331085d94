#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Mapping, Optional, Set, Tuple

from pydantic import ValidationError

from .documents import ConfigurationProperty, MappingAttributes, ModelContent
from .models import ModelRef, PropertySpec, ValueType

logger = logging.getLogger(__name__)


class MappingError(ValueError):
    """Mapping document can not be turned into poll tasks (fatal at startup)"""


def _describe(e: ValidationError) -> str:
    return "; ".join(
        "%s: %s" % (".".join(str(p) for p in err["loc"]) or "<root>", err["msg"])
        for err in e.errors()
    )


def find_model_section(mapping_doc: Mapping[str, Any], model: ModelRef) -> ModelContent:
    """
    Return the model section of the mapping content

    The catalog keys models as "ns:name:version", the dotted form
    "ns.name:version" is accepted as well
    """
    models = mapping_doc.get("models") if isinstance(mapping_doc, Mapping) else None
    if not isinstance(models, Mapping):
        raise MappingError("Mapping document has no 'models' object")

    for key in (model.content_key, model.catalog_id):
        section = models.get(key)
        if section is None:
            continue
        try:
            return ModelContent.model_validate(section)
        except ValidationError as e:
            raise MappingError(f"Malformed model section {key!r}: {_describe(e)}") from e

    raise MappingError(
        f"Model {model.content_key!r} not found in mapping document (available: {sorted(models)!r})"
    )


def iter_configuration_properties(
    section: ModelContent,
) -> Iterator[Tuple[str, Any, Optional[Mapping[str, Any]]]]:
    """Yield (name, type, attributes) for every declared configuration property"""
    prop: ConfigurationProperty
    for prop in section.configurationProperties:
        yield prop.name, prop.type, prop.mapping_attributes()


def resolve_property_specs(mapping_doc: Mapping[str, Any], model: ModelRef) -> Tuple[PropertySpec, ...]:
    """
    Build PropertySpec records from the mapping content

    - property without stereotype attributes -> skipped (logged)
    - bad rate / missing address or url      -> MappingError
    - type other than DOUBLE/BOOLEAN/INT     -> MappingError
    - same property mapped twice             -> MappingError
    """
    section = find_model_section(mapping_doc, model)

    logger.info("========================")
    logger.info("Configuration Properties")
    logger.info("========================")

    specs: List[PropertySpec] = []
    seen: Set[str] = set()
    for name, raw_type, attributes in iter_configuration_properties(section):
        logger.info("Property %s - %s", name, raw_type)

        if attributes is None:
            logger.info("No mapping given for %r, will be ignored...", name)
            continue

        try:
            value_type = ValueType.parse(raw_type)
        except ValueError as e:
            raise MappingError(f"Property {name!r}: {e}") from e

        try:
            attrs = MappingAttributes.model_validate(dict(attributes))
        except ValidationError as e:
            raise MappingError(f"Property {name!r}: bad mapping attributes: {_describe(e)}") from e

        if name in seen:
            raise MappingError(f"Property {name!r} is mapped more than once")
        seen.add(name)

        logger.info("Mapping %s - %s - %s", attrs.url, attrs.address, attrs.rate)
        specs.append(
            PropertySpec(
                name=name,
                value_type=value_type,
                source_address=attrs.address,
                source_url=attrs.url,
                poll_interval_millis=attrs.rate,
            )
        )

    logger.info("%d of %d configuration properties mapped", len(specs), len(section.configurationProperties))
    return tuple(specs)
