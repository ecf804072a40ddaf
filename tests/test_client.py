"""
Tests for appdex.client — the Appdex facade, sync and async.
"""

import pytest
from appdex import Appdex, AppdexConfig, ConfigError, EntryKind, health
from appdex.core.scoring import LAUNCH_WEIGHT

from conftest import make_config, write_desktop


@pytest.fixture
def client(config):
    c = Appdex(config=config)
    yield c
    c.close()


class TestConstruction:

    def test_explicit_config(self, config):
        with Appdex(config=config) as c:
            assert c.config is config

    def test_kwargs_override_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("APPDEX_MAX_RESULTS", "40")
        with Appdex(max_results=7, heatmap_path=str(tmp_path / "h.json")) as c:
            assert c.config.max_results == 7
            assert c.heatmap.path == tmp_path / "h.json"

    def test_unknown_kwarg(self):
        with pytest.raises(TypeError, match="bogus"):
            Appdex(bogus=1)

    def test_invalid_config_raises(self, tmp_path):
        with pytest.raises(ConfigError):
            Appdex(config=make_config(tmp_path, max_results=0))

    def test_validation_can_be_deferred(self, tmp_path):
        c = Appdex(config=make_config(tmp_path, max_results=0), validate_on_init=False)
        c.close()

    def test_instances_are_independent(self, tmp_path, apps_root):
        other_root = tmp_path / "other"
        write_desktop(other_root, "gimp.desktop", Name="GIMP", Exec="gimp %U")
        with Appdex(config=make_config(tmp_path, apps_root)) as a, \
                Appdex(config=make_config(tmp_path, other_root)) as b:
            a.rebuild()
            b.rebuild()
            assert "Firefox" in a.index and "Firefox" not in b.index
            assert "GIMP" in b.index and "GIMP" not in a.index


class TestSearch:

    def test_search_before_rebuild_is_empty(self, client):
        assert client.search("fire") == []

    def test_rebuild_then_search(self, client):
        result = client.rebuild()
        assert client.last_build is result
        assert client.search("fire")[0].name == "Firefox"

    def test_get(self, client):
        client.rebuild()
        assert client.get("Files").kind is EntryKind.APPLICATION
        assert client.get("Nope") is None


class TestUsage:

    def test_record_launch_raises_empty_query_score(self, client):
        client.rebuild()
        before = {r.name: r.score for r in client.search("")}
        assert client.record_launch("Htop") == 1
        after = {r.name: r.score for r in client.search("")}
        assert after["Htop"] - before["Htop"] == LAUNCH_WEIGHT
        assert after["Firefox"] == before["Firefox"]

    def test_record_unknown(self, client):
        client.rebuild()
        assert client.record_launch("Ghost") is None

    def test_counts_survive_restart(self, config):
        with Appdex(config=config) as first:
            first.rebuild()
            first.record_launch("Firefox")
            first.record_launch("Firefox")
        with Appdex(config=config) as second:
            second.rebuild()
            assert second.get("Firefox").launch_count == 2
            assert second.search("")[0].name == "Firefox"

    def test_launch_through_executor(self, client):
        client.rebuild()
        commands = []
        assert client.launch(client.get("Firefox"), commands.append) == "firefox"
        assert commands == ["firefox"]
        assert client.get("Firefox").launch_count == 1
        assert client.flush(timeout=5)
        assert client.heatmap.load() == {"Firefox": 1}

    def test_rebuild_keeps_unflushed_increment(self, client):
        client.rebuild()
        client.index.increment("Files")
        client.rebuild()
        assert client.get("Files").launch_count >= 1


class TestStats:

    def test_stats(self, client):
        client.rebuild()
        client.record_launch("Files")
        client.flush(timeout=5)
        s = client.stats()
        assert s["indexed_entries"] == 4
        assert s["launched_entries"] == 1
        assert s["total_launches"] == 1
        assert s["heatmap_entries"] == 1
        assert s["index_generation"] >= 2

    def test_health(self, client, config):
        h = client.health()
        assert h["indexed_entries"] == 0
        assert h["heatmap_path"] == str(config.get_heatmap_path())

    def test_module_health(self, config):
        h = health(config)
        assert h["max_results"] == 100
        assert "version" in h

    def test_public_config_export(self):
        assert AppdexConfig().max_results == 100


class TestAsyncApi:
    """Async variants run the sync methods on a worker thread."""

    @pytest.mark.asyncio
    async def test_arebuild_and_asearch(self, client):
        result = await client.arebuild()
        assert result.entries_indexed == 4
        hits = await client.asearch("file", max_results=2)
        assert {h.name for h in hits} == {"Files", "FileRoller"}

    @pytest.mark.asyncio
    async def test_arecord_launch(self, client):
        await client.arebuild()
        assert await client.arecord_launch("Files") == 1
