"""
Integration tests for /leaderboard endpoints
"""

import pytest


async def spin(client, address, is_win, tokens):
    response = await client.post("/user-stats", json={
        "address": address,
        "action": "update",
        "isWin": is_win,
        "tokensWon": tokens,
    })
    assert response.status_code == 200


class TestLeaderboardEndpoints:
    """Test suite for /leaderboard."""

    @pytest.mark.asyncio
    async def test_total_won_page(self, client, sample_addresses):
        for address, tokens in zip(sample_addresses, ["100", "50", "100"]):
            await spin(client, address, True, tokens)

        response = await client.get("/leaderboard?type=total_won&limit=2&offset=0")
        again = await client.get("/leaderboard?type=total_won&limit=2&offset=0")

        assert response.status_code == 200
        data = response.json()
        assert [e["rank"] for e in data["entries"]] == [1, 2]
        assert {e["address"] for e in data["entries"]} == {sample_addresses[0], sample_addresses[2]}
        assert data["entries"] == again.json()["entries"]
        assert data["pagination"] == {"total": 3, "hasMore": True, "currentOffset": 0, "limit": 2}

    @pytest.mark.asyncio
    async def test_offset_past_end(self, client, sample_addresses):
        for address in sample_addresses:
            await spin(client, address, False, "0")

        response = await client.get("/leaderboard?type=total_won&offset=1000")

        assert response.status_code == 200
        assert response.json() == {
            "entries": [],
            "pagination": {"total": 3, "hasMore": False, "currentOffset": 1000, "limit": 10},
        }

    @pytest.mark.asyncio
    async def test_entry_shape(self, client, sample_address):
        await spin(client, sample_address, True, "10")
        await spin(client, sample_address, False, "0")
        await spin(client, sample_address, True, "5")

        entry = (await client.get("/leaderboard?type=win_ratio")).json()["entries"][0]

        assert entry["address"] == sample_address
        assert entry["totalWon"] == "15"
        assert entry["spins"] == 3
        assert entry["wins"] == 2
        assert entry["winRatio"] == "66.7"
        assert entry["displayValue"] == "66.7"
        assert "rankingScore" in entry
        assert "displayName" not in entry

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [
        "type=biggest_loser",
        "limit=0",
        "limit=51",
        "limit=abc",
        "offset=-1",
    ])
    async def test_invalid_params(self, client, query):
        response = await client.get(f"/leaderboard?{query}")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_resolve_names_two_phase(self, client, fake_name_source, sample_addresses):
        """First read returns addresses only; names show up on the next read."""
        names = {sample_addresses[0]: "alice.eth"}
        fake_name_source.lookup.side_effect = lambda address: names.get(address)
        for address in sample_addresses[:2]:
            await spin(client, address, True, "1")

        first = await client.get("/leaderboard?resolveNames=true")
        second = await client.get("/leaderboard?resolveNames=true")

        assert all("displayName" not in e for e in first.json()["entries"])
        by_address = {e["address"]: e for e in second.json()["entries"]}
        assert by_address[sample_addresses[0]]["displayName"] == "alice.eth"
        assert "displayName" not in by_address[sample_addresses[1]]
        assert fake_name_source.lookup.await_count == 2

    @pytest.mark.asyncio
    async def test_names_not_requested(self, client, fake_name_source, sample_address):
        await spin(client, sample_address, True, "1")

        await client.get("/leaderboard")

        fake_name_source.lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rank(self, client, sample_addresses):
        await spin(client, sample_addresses[0], True, "1")
        await spin(client, sample_addresses[1], True, "9")

        response = await client.get(f"/leaderboard/rank?address={sample_addresses[0]}&type=total_won")
        missing = await client.get(f"/leaderboard/rank?address={sample_addresses[2]}")

        assert response.json() == {"address": sample_addresses[0], "type": "total_won", "rank": 2}
        assert missing.json()["rank"] is None

    @pytest.mark.asyncio
    async def test_rank_requires_address(self, client):
        response = await client.get("/leaderboard/rank")
        assert response.status_code == 400


class TestHealthEndpoint:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "store": "connected"}
