"""
Common interface of the per-language message generators.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Union

from ..errors import MalformedDefinition
from .model import ArityKind, Field, MessageModel, TypeRef
from .registry import ModelRegistry

MESSAGE_SUFFIX = "_msg"
SERVICE_SUFFIX = "_srv"

KnownModels = Union[ModelRegistry, Iterable[MessageModel], None]


def as_registry(known_models: KnownModels) -> ModelRegistry:
    if isinstance(known_models, ModelRegistry):
        return known_models
    return ModelRegistry(known_models or ())


def unit_name(model: MessageModel) -> str:
    """Name of the generated unit, without extension."""
    suffix = SERVICE_SUFFIX if model.role.is_service else MESSAGE_SUFFIX
    return f"{model.name}{suffix}"


class MessageGenerator(ABC):
    """Generates one source unit per message model.

    Subclasses implement ``emit``; ``generate`` resolves every composite
    type first so a missing dependency fails before any text is produced.
    """

    #: Target name used by ``get_generator``
    target: str = ""
    #: File extension of generated units, including the dot
    extension: str = ""

    def generate(self, model: MessageModel, known_models: KnownModels = None) -> str:
        """Generate source text for a model.

        Args:
            model: Parsed message model
            known_models: Registry (or iterable) of models that composite
                field types are resolved against

        Returns:
            Source text of one unit

        Raises:
            UnresolvedType: If a composite field type is not known
            MalformedDefinition: If a field has the message's own type
        """
        for f in model.fields:
            if (f.type.package, f.type.name) == (model.package, model.name):
                raise MalformedDefinition(
                    f"Field '{f.name}' cannot have the type of its own message "
                    f"'{model.full_name}'",
                    model.source,
                )
        registry = as_registry(known_models)
        resolved = {
            ref: registry.resolve(ref, source=model.source)
            for ref in model.composite_types()
        }
        lines = self.emit(model, resolved)
        return "\n".join(lines).rstrip("\n") + "\n"

    @abstractmethod
    def emit(self, model: MessageModel, resolved: Dict[TypeRef, MessageModel]) -> List[str]:
        """Emit the lines of one unit; all composite types are resolved."""

    def unit_name(self, model: MessageModel) -> str:
        return unit_name(model)

    def output_filename(self, model: MessageModel) -> str:
        return f"{unit_name(model)}{self.extension}"

    @staticmethod
    def header_comment(model: MessageModel, prefix: str) -> str:
        kind = {
            "request": "service request",
            "response": "service response",
        }.get(model.role.value, "message")
        return f"{prefix} Generated by rosmsgc from {kind} {model.full_name}. Do not edit."

    @staticmethod
    def bound_note(model_field: Field) -> Optional[str]:
        """Describe advisory bounds that the generated code does not enforce."""
        notes = []
        if model_field.arity.kind is ArityKind.BOUNDED:
            notes.append(f"at most {model_field.arity.bound} elements")
        if model_field.type.string_bound is not None:
            notes.append(f"strings of at most {model_field.type.string_bound} characters")
        if not notes:
            return None
        return "Advisory bound, not enforced: " + ", ".join(notes) + "."
