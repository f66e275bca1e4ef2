"""Unit tests for instance resolution and identifier qualification."""

import dataclasses

import pytest

from lemmy_service.collectors.lemmy.connection import (
    ConnectionResolver,
    actor_host,
    qualify,
    split_identifier,
)
from tests.factories import make_settings


class TestQualify:
    """Tests for FederatedIdentifier helpers."""

    def test_default_instance_left_bare(self):
        """Names on the default instance get no suffix."""
        assert qualify("technology", "lemmy.world", "lemmy.world") == "technology"
        assert qualify("technology", None, "lemmy.world") == "technology"

    def test_other_instance_suffixed(self):
        """Names elsewhere are suffixed with their host."""
        assert qualify("asklemmy", "lemmy.ml", "lemmy.world") == "asklemmy@lemmy.ml"

    @pytest.mark.parametrize("identifier", ["asklemmy@lemmy.ml", "12345@beehaw.org"])
    def test_round_trip(self, identifier):
        """Splitting then qualifying a foreign identifier gives it back."""
        name, instance = split_identifier(identifier)
        assert qualify(name, instance, "lemmy.world") == identifier

    def test_split(self):
        """Bare names have no instance; empty input is empty."""
        assert split_identifier("technology") == ("technology", None)
        assert split_identifier("technology@lemmy.ml") == ("technology", "lemmy.ml")
        assert split_identifier(None) == ("", None)
        assert split_identifier("") == ("", None)

    def test_actor_host(self):
        """Host comes from the actor URL."""
        assert actor_host("https://beehaw.org/c/technology") == "beehaw.org"


class TestConnectionResolver:
    """Tests for ConnectionResolver.resolve."""

    @pytest.fixture
    def resolver(self, settings):
        return ConnectionResolver(settings)

    def test_bare_input_uses_default(self, resolver):
        """Bare names resolve to the default instance."""
        context = resolver.resolve("technology")

        assert context.primary_input_name == "technology"
        assert context.qualified_input_name == "technology@lemmy.world"
        assert context.resolved_instance is None
        assert context.connection_instance == "lemmy.world"
        assert context.base_url == "https://lemmy.world"

    def test_qualified_input(self, resolver):
        """``name@host`` connects to host."""
        context = resolver.resolve("asklemmy@lemmy.ml")

        assert context.primary_input_name == "asklemmy"
        assert context.qualified_input_name == "asklemmy@lemmy.ml"
        assert context.resolved_instance == "lemmy.ml"
        assert context.connection_instance == "lemmy.ml"

    def test_empty_input_has_no_qualified_name(self, resolver):
        """Empty input still resolves, without a qualified name."""
        context = resolver.resolve(None)

        assert context.primary_input_name == ""
        assert context.qualified_input_name is None
        assert context.connection_instance == "lemmy.world"

    def test_post_instance_wins(self, resolver):
        """The post id's instance beats the group's and the input's."""
        context = resolver.resolve(
            "technology@beehaw.org",
            post_id="42@lemmy.ml",
            group_name="news@sh.itjust.works",
        )

        assert context.resolved_instance == "lemmy.ml"
        assert context.anchor_post_local_id == "42"
        assert context.qualified_input_name == "technology@lemmy.ml"

    def test_group_instance_beats_input(self, resolver):
        """Without a post instance the group's instance applies."""
        context = resolver.resolve("alice@beehaw.org", group_name="news@sh.itjust.works")

        assert context.resolved_instance == "sh.itjust.works"

    def test_unqualified_post_id_falls_through(self, resolver):
        """A bare post id does not hide the input's instance."""
        context = resolver.resolve("technology@beehaw.org", post_id="42")

        assert context.resolved_instance == "beehaw.org"
        assert context.anchor_post_local_id == "42"

    def test_read_limited_host_connects_to_alternate(self, resolver):
        """kbin.social is recorded for qualification but lemmy.ml is contacted."""
        context = resolver.resolve("technology@kbin.social")

        assert context.resolved_instance == "kbin.social"
        assert context.connection_instance == "lemmy.ml"
        assert context.qualified_input_name == "technology@kbin.social"
        assert context.qualify_local("42") == "42@kbin.social"

    def test_read_limited_default(self):
        """A deployment pinned to kbin.social connects to the alternate default."""
        resolver = ConnectionResolver(
            make_settings(lemmy_default_instance="kbin.social", lemmy_kbin_default_instance="lemmy.ml")
        )

        context = resolver.resolve("technology")

        assert context.qualified_input_name == "technology@kbin.social"
        assert context.connection_instance == "lemmy.ml"
        assert context.qualify_local("42") == "42"

    def test_alternate_falls_back_to_default(self):
        """Without an alternate configured the default instance is contacted."""
        resolver = ConnectionResolver(make_settings(lemmy_kbin_default_instance=None))

        assert resolver.resolve("x@kbin.social").connection_instance == "lemmy.world"

    def test_contexts_are_independent_values(self, resolver):
        """Each call gets its own immutable context."""
        first = resolver.resolve("a@lemmy.ml")
        second = resolver.resolve("b@beehaw.org")

        assert first.connection_instance == "lemmy.ml"
        assert second.connection_instance == "beehaw.org"
        with pytest.raises(dataclasses.FrozenInstanceError):
            first.connection_instance = "beehaw.org"

    def test_configured_default_drives_qualification(self):
        """The same entity qualifies differently under another default."""
        world = ConnectionResolver(make_settings()).resolve("x")
        ml = ConnectionResolver(make_settings(lemmy_default_instance="lemmy.ml")).resolve("x")

        assert world.qualify("asklemmy", "lemmy.ml") == "asklemmy@lemmy.ml"
        assert ml.qualify("asklemmy", "lemmy.ml") == "asklemmy"
