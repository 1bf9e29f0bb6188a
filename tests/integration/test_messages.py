"""
Integration Tests: 소비자-벤더 메시지
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from rise_local.models.user import User
from rise_local.models.vendor import Vendor


async def _start(async_client: AsyncClient, vendor: Vendor, headers: dict) -> dict:
    response = await async_client.post(
        "/api/conversations", json={"vendorId": str(vendor.id)}, headers=headers
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
class TestConversations:
    async def test_one_conversation_per_pair(
        self,
        async_client: AsyncClient,
        test_user: User,
        test_vendor: Vendor,
        auth_headers: dict,
    ):
        first = await _start(async_client, test_vendor, auth_headers)
        second = await _start(async_client, test_vendor, auth_headers)

        assert first["id"] == second["id"]
        assert first["consumerId"] == str(test_user.id)
        assert first["vendorId"] == str(test_vendor.id)

    async def test_unknown_vendor(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/conversations", json={"vendorId": str(uuid4())}, headers=auth_headers
        )

        assert response.status_code == 404

    async def test_vendor_cannot_message_itself(
        self, async_client: AsyncClient, test_vendor: Vendor, vendor_headers: dict
    ):
        response = await async_client.post(
            "/api/conversations",
            json={"vendorId": str(test_vendor.id)},
            headers=vendor_headers,
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestMessages:
    async def test_exchange_and_unread_counts(
        self,
        async_client: AsyncClient,
        test_vendor: Vendor,
        auth_headers: dict,
        vendor_headers: dict,
    ):
        # Given: 소비자가 메시지 전송
        conversation = await _start(async_client, test_vendor, auth_headers)
        sent = await async_client.post(
            f"/api/conversations/{conversation['id']}/messages",
            json={"body": "Are you open on Sunday?"},
            headers=auth_headers,
        )
        assert sent.status_code == 201

        # Then: 벤더에게 안 읽은 메시지 1개
        vendor_list = await async_client.get("/api/conversations", headers=vendor_headers)
        [item] = vendor_list.json()["conversations"]
        assert item["unreadCount"] == 1
        assert item["lastMessageAt"] is not None

        # When: 벤더가 읽음
        messages = await async_client.get(
            f"/api/conversations/{conversation['id']}/messages", headers=vendor_headers
        )
        assert [m["body"] for m in messages.json()["messages"]] == ["Are you open on Sunday?"]
        assert messages.json()["messages"][0]["isRead"] is True

        # Then: 안 읽은 메시지 없음
        vendor_list = await async_client.get("/api/conversations", headers=vendor_headers)
        assert vendor_list.json()["conversations"][0]["unreadCount"] == 0

        # 자기가 보낸 메시지는 안 읽음으로 세지 않음
        consumer_list = await async_client.get("/api/conversations", headers=auth_headers)
        assert consumer_list.json()["conversations"][0]["unreadCount"] == 0

    async def test_non_participant_is_forbidden(
        self,
        async_client: AsyncClient,
        test_vendor: Vendor,
        auth_headers: dict,
        member_headers: dict,
    ):
        conversation = await _start(async_client, test_vendor, auth_headers)

        read = await async_client.get(
            f"/api/conversations/{conversation['id']}/messages", headers=member_headers
        )
        write = await async_client.post(
            f"/api/conversations/{conversation['id']}/messages",
            json={"body": "hello"},
            headers=member_headers,
        )

        assert read.status_code == 403
        assert write.status_code == 403

    async def test_message_is_sanitized(
        self, async_client: AsyncClient, test_vendor: Vendor, auth_headers: dict
    ):
        conversation = await _start(async_client, test_vendor, auth_headers)

        response = await async_client.post(
            f"/api/conversations/{conversation['id']}/messages",
            json={"body": "<script>alert(1)</script>Hi <b>there</b>"},
            headers=auth_headers,
        )

        assert response.json()["body"] == "Hi there"

    async def test_message_length_limit(
        self, async_client: AsyncClient, test_vendor: Vendor, auth_headers: dict
    ):
        conversation = await _start(async_client, test_vendor, auth_headers)
        url = f"/api/conversations/{conversation['id']}/messages"

        at_limit = await async_client.post(url, json={"body": "a" * 2000}, headers=auth_headers)
        too_long = await async_client.post(url, json={"body": "a" * 2001}, headers=auth_headers)
        only_tags = await async_client.post(url, json={"body": "<p></p>"}, headers=auth_headers)

        assert at_limit.status_code == 201
        assert too_long.status_code == 400
        assert too_long.json()["details"]["field"] == "body"
        assert only_tags.status_code == 400
