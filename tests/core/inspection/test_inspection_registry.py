"""
tests/test_inspection_registry.py - core/inspection/registry.py 테스트
"""

import pytest

from core.exceptions import InspectorNotFoundError, InvalidArgumentError
from core.inspection import BaseCheck, BaseInspector, InspectorRegistry, has_inspector_capabilities


class NoopCheck(BaseCheck):
    check_id = "noop"

    def run(self):
        pass


class StorageInspector(BaseInspector):
    service_category = "STORAGE"
    check_classes = (NoopCheck,)

    def __init__(self, options=None):
        super().__init__(options)
        self.received_options = dict(options or {})


class ComputeInspector(BaseInspector):
    service_category = "COMPUTE"


class BrokenInspector(BaseInspector):
    service_category = "BROKEN"

    def get_info(self):
        raise RuntimeError("cannot describe")


class NotAnInspector:
    def execute(self):
        pass


class TestRegister:
    """등록/조회 테스트"""

    def test_case_insensitive(self):
        registry = InspectorRegistry()
        registry.register("Storage", StorageInspector)

        assert registry.get("STORAGE") is StorageInspector
        assert registry.get("storage") is StorageInspector
        assert registry.is_supported("sToRaGe")
        assert "storage" in registry
        assert registry.categories() == ["STORAGE"]

    def test_overwrite(self):
        """같은 키 재등록 시 덮어씀"""
        registry = InspectorRegistry()
        registry.register("X", StorageInspector)
        registry.register("x", ComputeInspector)

        assert registry.get("X") is ComputeInspector
        assert len(registry) == 1

    @pytest.mark.parametrize("key", ["", "   ", None, 3])
    def test_invalid_key(self, key):
        with pytest.raises(InvalidArgumentError):
            InspectorRegistry().register(key, StorageInspector)

    @pytest.mark.parametrize("factory", [None, "S3Inspector", NotAnInspector, lambda options=None: None])
    def test_missing_capabilities(self, factory):
        with pytest.raises(InvalidArgumentError):
            InspectorRegistry().register("X", factory)

    def test_has_inspector_capabilities(self):
        assert has_inspector_capabilities(StorageInspector)
        assert not has_inspector_capabilities(NotAnInspector)

    def test_get_missing_returns_none(self):
        registry = InspectorRegistry()

        assert registry.get("nope") is None
        assert registry.get("") is None
        assert "nope" not in registry
        assert 3 not in registry


class TestCreate:
    """Inspector 생성 테스트"""

    def test_create_new_instance_each_time(self):
        registry = InspectorRegistry()
        registry.register("STORAGE", StorageInspector)

        first = registry.create("storage", {"max_retries": 1})
        second = registry.create("STORAGE")

        assert isinstance(first, StorageInspector)
        assert first is not second
        assert first.received_options == {"max_retries": 1}
        assert first.retry_policy.max_attempts == 1

    def test_create_unknown(self):
        with pytest.raises(InspectorNotFoundError):
            InspectorRegistry().create("RDS")


class TestLifecycle:
    """해제/초기화/discovery 테스트"""

    def test_unregister(self):
        registry = InspectorRegistry()
        registry.register("STORAGE", StorageInspector)

        assert registry.unregister("storage") is True
        assert registry.unregister("storage") is False
        assert registry.unregister("") is False
        assert registry.get("STORAGE") is None

    def test_clear(self):
        registry = InspectorRegistry()
        registry.register("A", StorageInspector)
        registry.register("B", ComputeInspector)

        registry.clear()

        assert len(registry) == 0
        assert list(registry) == []

    def test_list_info(self):
        registry = InspectorRegistry()
        registry.register("STORAGE", StorageInspector)
        registry.register("COMPUTE", ComputeInspector)

        infos = {info.service_category: info for info in registry.list_info()}

        assert set(infos) == {"STORAGE", "COMPUTE"}
        assert infos["STORAGE"].supported_checks == ("noop",)
        assert infos["COMPUTE"].supported_checks == ()
        assert infos["STORAGE"].to_dict()["supportedChecks"] == ["noop"]

    def test_list_info_skips_failures(self):
        """정보 조회에 실패한 Inspector만 제외"""
        registry = InspectorRegistry()
        registry.register("STORAGE", StorageInspector)
        registry.register("BROKEN", BrokenInspector)

        infos = registry.list_info()

        assert [info.service_category for info in infos] == ["STORAGE"]
