"""
지식 베이스 및 사용량 API 통합 테스트.
승인 이벤트로 생성된 지식 항목 조회/삭제와 프로바이더별 사용량 집계를 확인합니다.
"""

from httpx import AsyncClient


async def _approved_project(client: AsyncClient) -> str:
    response = await client.post(
        "/api/v1/projects",
        json={"raw_input": "We need an online booking system for our clinics in the US."},
    )
    project_id = response.json()["id"]
    await client.post(f"/api/v1/projects/{project_id}/actions", json={"action": "approve"})
    return project_id


async def test_knowledge_empty(client: AsyncClient):
    """승인 전에는 지식 항목이 없어야 한다."""
    response = await client.get("/api/v1/knowledge")

    assert response.status_code == 200
    assert response.json() == {"total": 0, "entries": []}


async def test_approval_creates_knowledge_entry(client: AsyncClient):
    """승인 1회당 approved_estimate 항목이 정확히 하나 생성되어야 한다."""
    project_id = await _approved_project(client)

    response = await client.get("/api/v1/knowledge", params={"category": "approved_estimate"})

    data = response.json()
    assert data["total"] == 1
    assert data["entries"][0]["metadata"]["project_id"] == project_id


async def test_knowledge_unknown_category(client: AsyncClient):
    """알 수 없는 분류로 필터링하면 422를 반환해야 한다."""
    response = await client.get("/api/v1/knowledge", params={"category": "gossip"})

    assert response.status_code == 422


async def test_delete_knowledge_entry(client: AsyncClient):
    """지식 항목을 삭제하면 목록에서 사라지고, 두 번째 삭제는 404여야 한다."""
    await _approved_project(client)
    entries = (await client.get("/api/v1/knowledge")).json()["entries"]
    entry_id = entries[0]["id"]

    response = await client.delete(f"/api/v1/knowledge/{entry_id}")
    assert response.status_code == 200

    remaining = (await client.get("/api/v1/knowledge")).json()["entries"]
    assert entry_id not in [e["id"] for e in remaining]

    response = await client.delete(f"/api/v1/knowledge/{entry_id}")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_002"


async def test_usage_by_provider(client: AsyncClient):
    """프로바이더별 사용량은 모든 프로젝트의 호출을 합산해야 한다."""
    await _approved_project(client)

    response = await client.get("/api/v1/usage/providers")

    assert response.status_code == 200
    data = response.json()
    assert data["by_provider"][0]["provider"] == "fake"
    # 입력 처리, 시장 조사, 견적, 메일 초안
    assert data["total_calls"] == 4
    assert data["total_tokens"] == 4 * 150
