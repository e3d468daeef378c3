import pytest


@pytest.mark.asyncio
async def test_propose_confirm_then_conflict(async_client, make_course, make_section, instructor) -> None:
    course = await make_course(cost_cents=400)
    await make_section(course, name="Part 1", price_cents=200)
    await make_section(course, name="Part 2", price_cents=200)
    async_client.user = instructor

    response = await async_client.post(
        f"/api/v1/pricing/courses/{course.course_id}/cost", json={"new_cost_cents": 240},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["applied"] is False
    assert body["cost_cents"] == 400
    change_id = body["pending_change"]["change_id"]
    assert [s["new_price"] for s in body["pending_change"]["affected_sections"]] == [120, 120]

    confirmed = await async_client.post(f"/api/v1/pricing/changes/{change_id}/confirm")
    assert confirmed.status_code == 200
    assert confirmed.json()["applied"] is True
    assert confirmed.json()["cost_cents"] == 240
    assert confirmed.json()["record"]["sections_adjusted"] is True

    again = await async_client.post(f"/api/v1/pricing/changes/{change_id}/confirm")
    assert again.status_code == 409
    error = again.json()
    assert error["error"]["code"] == "conflict"
    assert "already resolved" in error["error"]["message"]
    assert "request_id" in error


@pytest.mark.asyncio
async def test_non_positive_cost_is_422(async_client, make_course, instructor) -> None:
    course = await make_course()
    async_client.user = instructor

    response = await async_client.post(
        f"/api/v1/pricing/courses/{course.course_id}/cost", json={"new_cost_cents": 0},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.asyncio
async def test_non_owner_is_forbidden(async_client, make_course, outsider) -> None:
    course = await make_course()
    async_client.user = outsider

    response = await async_client.post(
        f"/api/v1/pricing/courses/{course.course_id}/cost", json={"new_cost_cents": 500},
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "forbidden"
