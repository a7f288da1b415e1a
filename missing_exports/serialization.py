# missing_exports/serialization.py
"""
JSON-ready views of the documentation tree and of resolution reports.

Reflections become nested dicts keyed the way TypeDoc's JSON output is
(``id``, ``name``, ``kind``, ``variant``, ``children``, ``signatures``,
...).  References carry ``target``: the id of the reflection they resolve
to, or ``null`` when unresolved.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from missing_exports.models import (
    DeclarationReflection,
    ParameterReflection,
    ProjectReflection,
    Reflection,
    SignatureReflection,
    TypeParameterReflection,
)
from missing_exports.resolver import ModuleResolution, ResolutionReport
from missing_exports.types import (
    ReferenceType,
    ReflectionType,
    SomeType,
    TypeVisitor,
)

__all__ = ["type_to_dict", "reflection_to_dict", "project_to_dict", "report_to_dict"]

# Attribute names (Python) → JSON keys for the nested type fields.
_TYPE_FIELDS = {
    "element_type": "elementType",
    "types": "types",
    "elements": "elements",
    "element": "element",
    "check_type": "checkType",
    "extends_type": "extendsType",
    "true_type": "trueType",
    "false_type": "falseType",
    "object_type": "objectType",
    "index_type": "indexType",
    "constraint": "constraint",
    "parameter_type": "parameterType",
    "template_type": "templateType",
    "name_type": "nameType",
    "target_type": "targetType",
    "query_type": "queryType",
    "target": "target",
}
_SCALAR_FIELDS = {
    "name": "name",
    "value": "value",
    "is_optional": "isOptional",
    "parameter": "parameter",
    "asserts": "asserts",
    "operator": "operator",
    "head": "head",
}


class _TypeSerializer(TypeVisitor):

    def generic_visit(self, type_: SomeType) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": type_.type}
        for attr, key in _SCALAR_FIELDS.items():
            if hasattr(type_, attr):
                result[key] = getattr(type_, attr)
        for attr, key in _TYPE_FIELDS.items():
            value = getattr(type_, attr, None)
            if isinstance(value, SomeType):
                result[key] = value.visit(self)
            elif isinstance(value, list):
                result[key] = [t.visit(self) for t in value]
        tail = getattr(type_, "tail", None)
        if tail:
            result["tail"] = [[t.visit(self), text] for t, text in tail]
        return result

    def visit_reference(self, type_: ReferenceType) -> Dict[str, Any]:
        target = type_.reflection
        result: Dict[str, Any] = {
            "type": "reference",
            "name": type_.name,
            "target": target.id if target is not None else None,
        }
        if type_.package:
            result["package"] = type_.package
        if type_.type_arguments:
            result["typeArguments"] = [t.visit(self) for t in type_.type_arguments]
        return result

    def visit_reflection(self, type_: ReflectionType) -> Dict[str, Any]:
        return {"type": "reflection", "declaration": reflection_to_dict(type_.declaration)}


_serializer = _TypeSerializer()


def type_to_dict(type_: Optional[SomeType]) -> Optional[Dict[str, Any]]:
    return None if type_ is None else type_.visit(_serializer)


def _many(reflections: Optional[List[Reflection]]) -> Optional[List[Dict[str, Any]]]:
    if not reflections:
        return None
    return [reflection_to_dict(r) for r in reflections]


def reflection_to_dict(reflection: Reflection) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "id": reflection.id,
        "name": reflection.name,
        "variant": reflection.variant,
        "kind": reflection.kind.label,
    }
    fields: Dict[str, Any] = {}
    if isinstance(reflection, DeclarationReflection):
        fields = {
            "type": type_to_dict(reflection.type),
            "defaultValue": reflection.default_value,
            "typeParameters": _many(reflection.type_parameters),
            "signatures": _many(reflection.signatures),
            "indexSignatures": _many(reflection.index_signatures),
            "getSignature": _many([reflection.get_signature] if reflection.get_signature else None),
            "setSignature": _many([reflection.set_signature] if reflection.set_signature else None),
            "extendedTypes": [type_to_dict(t) for t in reflection.extended_types or []] or None,
            "implementedTypes": [type_to_dict(t) for t in reflection.implemented_types or []] or None,
        }
    elif isinstance(reflection, SignatureReflection):
        fields = {
            "typeParameters": _many(reflection.type_parameters),
            "parameters": _many(reflection.parameters),
            "type": type_to_dict(reflection.type),
        }
    elif isinstance(reflection, ParameterReflection):
        fields = {
            "type": type_to_dict(reflection.type),
            "isOptional": reflection.is_optional or None,
            "isRest": reflection.is_rest or None,
        }
    elif isinstance(reflection, TypeParameterReflection):
        fields = {
            "type": type_to_dict(reflection.type),
            "default": type_to_dict(reflection.default),
        }
    result.update((k, v) for k, v in fields.items() if v is not None)

    children = getattr(reflection, "children", None)
    if children:
        result["children"] = [reflection_to_dict(c) for c in children]
    return result


def project_to_dict(project: ProjectReflection) -> Dict[str, Any]:
    return reflection_to_dict(project)


def _module_to_dict(resolution: ModuleResolution) -> Dict[str, Any]:
    return {
        "module": resolution.module.name,
        "rounds": resolution.rounds,
        "aliased": [
            {"symbol": symbol.name, "target": target.id, "targetName": target.get_full_name()}
            for symbol, target in resolution.aliased
        ],
        "synthesized": [
            {"id": r.id, "name": r.get_full_name(), "kind": r.kind.label}
            for r in resolution.synthesized
        ],
        "skippedDefaults": [s.name for s in resolution.skipped_defaults],
        "unresolved": [s.name for s in resolution.unresolved],
        "dropped": [s.name for s in resolution.dropped],
        "internalNamespace": resolution.namespace.name if resolution.namespace else None,
    }


def report_to_dict(report: ResolutionReport) -> Dict[str, Any]:
    return {
        "aliased": report.aliased_count,
        "synthesized": report.synthesized_count,
        "modules": [_module_to_dict(m) for m in report.modules],
    }
