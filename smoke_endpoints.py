"""Smoke-check a running server against live Sleeper data.

Start the API with ``uvicorn acquisition_tracker.main:app`` and run this script.
"""
import asyncio
import json

import httpx

BASE_URL = "http://127.0.0.1:8000"
TEST_USERNAME = "some_username"  # This user might not exist, but tests the endpoint
TEST_LEAGUE_ID = "1191596293294166016"
TEST_SEASON = "2023"


async def check_endpoint(client: httpx.AsyncClient, url: str, endpoint_name: str, expected_status: int = 200):
    print(f"\n--- Testing {endpoint_name} ---")
    print(f"URL: {url}")
    try:
        response = await client.get(url, timeout=120.0)  # Lineage resolution fetches many seasons
        print(f"Status Code: {response.status_code}")
        print(f"Response: {response.json()}")
        if response.status_code != expected_status:
            print(f"ISSUE: Expected status {expected_status}, got {response.status_code}")
            return False
    except httpx.RequestError as e:
        print(f"ISSUE: Request failed: {e}")
        return False
    except json.JSONDecodeError:
        print(f"ISSUE: Could not decode JSON response: {response.text}")
        return False
    return True


async def main():
    async with httpx.AsyncClient() as client:
        await check_endpoint(client, f"{BASE_URL}/", "read_root")
        await check_endpoint(client, f"{BASE_URL}/user/{TEST_USERNAME}", "get_user")
        await check_endpoint(client, f"{BASE_URL}/user/{TEST_USERNAME}/seasons", "get_user_seasons")
        await check_endpoint(client, f"{BASE_URL}/user/{TEST_USERNAME}/leagues/{TEST_SEASON}", "get_leagues_for_user")
        await check_endpoint(client, f"{BASE_URL}/league/{TEST_LEAGUE_ID}/history", "get_league_history")
        await check_endpoint(
            client,
            f"{BASE_URL}/league/{TEST_LEAGUE_ID}/user/{TEST_USERNAME}/acquisitions",
            "get_player_acquisitions",
        )
        await check_endpoint(client, f"{BASE_URL}/league/{TEST_LEAGUE_ID}/user/{TEST_USERNAME}/roster", "get_roster_view")


if __name__ == "__main__":
    asyncio.run(main())
