"""
inspectors - 기본 제공 Inspector

Example:
    from inspectors import create_default_registry

    registry = create_default_registry()
    registry.categories()  # ["S3", "EC2"]
"""

from core.inspection import InspectorRegistry

from .ec2 import EC2Inspector
from .s3 import S3Inspector

DEFAULT_INSPECTORS = (S3Inspector, EC2Inspector)


def create_default_registry() -> InspectorRegistry:
    """기본 Inspector가 등록된 새 레지스트리"""
    registry = InspectorRegistry()
    for inspector_class in DEFAULT_INSPECTORS:
        registry.register(inspector_class.service_category, inspector_class)
    return registry


__all__: list[str] = ["create_default_registry", "DEFAULT_INSPECTORS", "S3Inspector", "EC2Inspector"]
