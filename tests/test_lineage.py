import pytest

from acquisition_tracker.cancellation import CancellationToken
from acquisition_tracker.errors import ResolutionCancelled
from acquisition_tracker.services.lineage import walk_lineage


@pytest.mark.asyncio
async def test_walk_lineage_returns_oldest_season_first(dynasty_source):
    nodes = await walk_lineage(dynasty_source, "L2023")
    assert [(n.league_id, n.season) for n in nodes] == [("L2022", "2022"), ("L2023", "2023")]
    assert nodes[1].previous_league_id == "L2022"
    assert nodes[0].previous_league_id is None


@pytest.mark.asyncio
async def test_walk_lineage_stops_on_cycle(source):
    source.add_league("A", "2023", previous="B")
    source.add_league("B", "2022", previous="A")

    nodes = await walk_lineage(source, "A")

    assert [n.league_id for n in nodes] == ["B", "A"]
    assert source.calls == [("league", "A"), ("league", "B")]


@pytest.mark.asyncio
async def test_walk_lineage_caps_chain_at_ten_seasons(source):
    for year in range(2000, 2015):
        previous = f"L{year - 1}" if year > 2000 else None
        source.add_league(f"L{year}", str(year), previous=previous)

    nodes = await walk_lineage(source, "L2014")

    assert len(nodes) == 10
    assert nodes[0].league_id == "L2005"
    assert nodes[-1].league_id == "L2014"


@pytest.mark.asyncio
async def test_walk_lineage_degrades_when_first_fetch_fails(source):
    source.add_league("A", "2023")
    source.failures.add(("league", "A"))

    nodes = await walk_lineage(source, "A")

    assert len(nodes) == 1
    assert nodes[0].league_id == "A"
    assert nodes[0].season == ""


@pytest.mark.asyncio
async def test_walk_lineage_keeps_collected_seasons_when_later_fetch_fails(source):
    source.add_league("A", "2023", previous="B")
    source.add_league("B", "2022", previous="C")
    source.failures.add(("league", "B"))

    nodes = await walk_lineage(source, "A")

    assert [n.league_id for n in nodes] == ["A"]
    assert nodes[0].season == "2023"


@pytest.mark.asyncio
async def test_walk_lineage_unknown_league_degrades_to_single_node(source):
    nodes = await walk_lineage(source, "missing")
    assert [(n.league_id, n.season) for n in nodes] == [("missing", "")]


@pytest.mark.asyncio
async def test_walk_lineage_raises_when_cancelled(dynasty_source):
    token = CancellationToken()
    token.cancel()
    with pytest.raises(ResolutionCancelled):
        await walk_lineage(dynasty_source, "L2023", token)
