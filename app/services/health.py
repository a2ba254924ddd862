"""
프로바이더 상태(ApiHealth) 레지스트리입니다.

전역 변수 대신 네임스페이스가 있는 키-값 저장소를 주입받아 사용합니다.
- 프로세스 시작 시 비어 있음
- 프로바이더 시도가 끝날 때마다 덮어씀
- 관리자 작업(reset)으로만 초기화
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from app.models import ApiHealth, ApiHealthStatus

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """네임스페이스 단위 키-값 저장소 인터페이스."""

    async def get(self, namespace: str, key: str) -> Optional[str]: ...

    async def set(self, namespace: str, key: str, value: str) -> None: ...

    async def items(self, namespace: str) -> dict[str, str]: ...

    async def clear(self, namespace: str) -> None: ...


class InMemoryKeyValueStore:
    """프로세스 메모리 기반 KeyValueStore 구현."""

    def __init__(self):
        self._data: dict[str, dict[str, str]] = {}

    async def get(self, namespace: str, key: str) -> Optional[str]:
        return self._data.get(namespace, {}).get(key)

    async def set(self, namespace: str, key: str, value: str) -> None:
        self._data.setdefault(namespace, {})[key] = value

    async def items(self, namespace: str) -> dict[str, str]:
        return dict(self._data.get(namespace, {}))

    async def clear(self, namespace: str) -> None:
        self._data.pop(namespace, None)


class ApiHealthRegistry:
    """프로바이더/서비스별 마지막 상태를 관리합니다."""

    NAMESPACE = "api_health"

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def update(
        self,
        service: str,
        status: ApiHealthStatus,
        latency_ms: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> ApiHealth:
        """상태 덮어쓰기 (이력은 남기지 않음)."""
        health = ApiHealth(
            service=service,
            status=status,
            latency_ms=latency_ms,
            error_message=error_message,
            last_checked=datetime.now(),
        )
        await self.store.set(self.NAMESPACE, service, health.model_dump_json())

        if status != ApiHealthStatus.ONLINE:
            logger.debug(f"[Health] {service} → {status.value}: {error_message}")
        return health

    async def get(self, service: str) -> Optional[ApiHealth]:
        raw = await self.store.get(self.NAMESPACE, service)
        if raw is None:
            return None
        return ApiHealth.model_validate_json(raw)

    async def all(self) -> list[ApiHealth]:
        """모든 서비스의 현재 상태 (서비스 이름순)."""
        items = await self.store.items(self.NAMESPACE)
        return [ApiHealth.model_validate_json(items[name]) for name in sorted(items)]

    async def reset(self) -> None:
        """관리자 초기화."""
        await self.store.clear(self.NAMESPACE)
        logger.info("[Health] 프로바이더 상태 초기화")


# 싱글톤 인스턴스
_health_registry: Optional[ApiHealthRegistry] = None


def get_health_registry() -> ApiHealthRegistry:
    """프로세스 공유 ApiHealthRegistry (인메모리 저장소)."""
    global _health_registry
    if _health_registry is None:
        _health_registry = ApiHealthRegistry(InMemoryKeyValueStore())
    return _health_registry
