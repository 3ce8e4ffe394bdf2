"""
core/inspection/registry.py - Inspector 레지스트리

서비스 카테고리 키 → Inspector 생성자 매핑입니다. 호출자는 구체 타입을 몰라도
카테고리 이름만으로 Inspector를 찾고 생성할 수 있습니다.

규칙:
    - 키는 대소문자를 구분하지 않습니다 (내부적으로 대문자로 정규화).
    - 같은 키로 다시 등록하면 덮어씁니다 (last-write-wins).
    - 전역 인스턴스는 없습니다. 애플리케이션 시작 코드가 생성해서 주입합니다
      (inspectors.create_default_registry 참고).

Usage:
    registry = InspectorRegistry()
    registry.register("S3", S3Inspector)

    inspector = registry.create("s3")
    inspector.execute(credentials, {"targetItem": "all"})
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from core.exceptions import InspectorNotFoundError, InvalidArgumentError

from .base import InspectorInfo

logger = logging.getLogger(__name__)

InspectorFactory = Callable[..., Any]

# Inspector가 반드시 제공해야 하는 메서드
REQUIRED_CAPABILITIES = ("execute", "get_info")


def _normalize(service_category: Any) -> str:
    if not isinstance(service_category, str) or not service_category.strip():
        raise InvalidArgumentError("service_category", "비어 있지 않은 문자열이어야 합니다")
    return service_category.strip().upper()


def has_inspector_capabilities(factory: Any) -> bool:
    """생성자가 Inspector 계약(execute, get_info)을 만족하는지 확인"""
    if factory is None or not callable(factory):
        return False
    return all(callable(getattr(factory, name, None)) for name in REQUIRED_CAPABILITIES)


class InspectorRegistry:
    """서비스 카테고리 → Inspector 생성자 레지스트리 (스레드 세이프)"""

    def __init__(self) -> None:
        self._factories: dict[str, InspectorFactory] = {}
        self._lock = threading.Lock()

    def register(self, service_category: str, factory: InspectorFactory) -> None:
        """Inspector 생성자 등록 (같은 키가 있으면 덮어씀)

        Raises:
            InvalidArgumentError: 키가 비어 있거나 생성자가 계약을 만족하지 않는 경우
        """
        key = _normalize(service_category)
        if not has_inspector_capabilities(factory):
            raise InvalidArgumentError(
                "factory",
                f"Inspector 생성자는 {', '.join(REQUIRED_CAPABILITIES)} 메서드를 제공해야 합니다",
            )

        with self._lock:
            replaced = key in self._factories
            self._factories[key] = factory

        if replaced:
            logger.debug(f"Inspector 덮어씀: {key}")
        else:
            logger.debug(f"Inspector 등록: {key}")

    def get(self, service_category: str) -> InspectorFactory | None:
        """생성자 조회 (없으면 None)"""
        try:
            key = _normalize(service_category)
        except InvalidArgumentError:
            return None
        with self._lock:
            return self._factories.get(key)

    def create(self, service_category: str, options: Mapping[str, Any] | None = None) -> Any:
        """Inspector 인스턴스 생성

        Raises:
            InspectorNotFoundError: 등록되지 않은 카테고리
        """
        factory = self.get(service_category)
        if factory is None:
            raise InspectorNotFoundError(str(service_category))
        return factory(dict(options or {}))

    def unregister(self, service_category: str) -> bool:
        """등록 해제 (없으면 False)"""
        try:
            key = _normalize(service_category)
        except InvalidArgumentError:
            return False
        with self._lock:
            return self._factories.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._factories.clear()

    def is_supported(self, service_category: str) -> bool:
        return self.get(service_category) is not None

    def categories(self) -> list[str]:
        """등록된 카테고리 키 (등록 순서)"""
        with self._lock:
            return list(self._factories)

    def list_info(self) -> list[InspectorInfo]:
        """등록된 Inspector 자기 설명 목록

        각 Inspector를 임시로 생성해 get_info()를 호출합니다.
        생성이나 조회에 실패한 Inspector는 결과에서 제외됩니다.
        """
        with self._lock:
            entries = list(self._factories.items())

        infos: list[InspectorInfo] = []
        for key, factory in entries:
            try:
                infos.append(factory().get_info())
            except Exception as e:
                logger.warning(f"Inspector 정보 조회 실패 [{key}]: {e}")
        return infos

    def __contains__(self, service_category: object) -> bool:
        return isinstance(service_category, str) and self.is_supported(service_category)

    def __len__(self) -> int:
        with self._lock:
            return len(self._factories)

    def __iter__(self) -> Iterator[str]:
        return iter(self.categories())
