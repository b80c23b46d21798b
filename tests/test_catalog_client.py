"""Tests for the Discogs catalog client."""

import httpx
import pytest

from albumtracker.catalog import CatalogCandidate, DiscogsClient, Selection, master_id_of
from albumtracker.errors import AuthError, NetworkError, ParseError, UnconfirmedWriteError
from conftest import ABBEY_ROAD_ENTRY, FakeServices


def versions(n):
    return [
        {
            "id": 1000 + i,
            "title": "Abbey Road",
            "country": "UK",
            "released": f"{2020 - i}",
            "format": "LP, Album, RE",
        }
        for i in range(n)
    ]


MASTER_RESULT = {"id": 24047, "type": "master", "master_id": 24047, "title": "The Beatles - Abbey Road"}


def make_client(handler, **kwargs):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return DiscogsClient(http=http, user="digger", token="secret", **kwargs)


class TestMasterIdOf:
    """Tests for master_id_of() function."""

    def test_release_with_master(self):
        """Test that a release result points at its master."""
        assert master_id_of({"id": 1, "type": "release", "master_id": 24047}) == 24047

    def test_master_result(self):
        """Test that a master result is its own grouping."""
        assert master_id_of({"id": 24047, "type": "master"}) == 24047

    def test_release_without_master(self):
        """Test that master_id 0 means no grouping."""
        assert master_id_of({"id": 1, "type": "release", "master_id": 0}) is None
        assert master_id_of({"id": 1, "type": "release"}) is None

    def test_numeric_string_accepted(self):
        """Test that a string master id holding digits is converted."""
        assert master_id_of({"id": 1, "master_id": "24047"}) == 24047

    def test_non_integer_master_id(self):
        """Test that a garbage master id is a parse failure."""
        with pytest.raises(ParseError):
            master_id_of({"id": 1, "master_id": "abc"})


class TestSearch:
    """Tests for DiscogsClient.search()."""

    def test_master_resolved_to_versions(self):
        """Test that a master hit triggers a versions lookup."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=versions(3))

        candidates = make_client(services).search("abbey road vinyl")

        assert services.paths() == ["/database/search", "/masters/24047/versions"]
        assert [c.id for c in candidates] == [1000, 1001, 1002]
        assert all(isinstance(c, CatalogCandidate) for c in candidates)

    def test_versions_query_parameters(self):
        """Test the format filter and newest-first ordering requested."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=versions(1))

        make_client(services).search("abbey road")

        params = services.requests[1].url.params
        assert params["format"] == "Vinyl"
        assert params["sort"] == "released"
        assert params["sort_order"] == "desc"
        assert params["per_page"] == "10"
        assert "country" not in params

    def test_country_filter(self):
        """Test that a preferred country is passed to the versions lookup."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=versions(1))

        make_client(services, preferred_country="UK").search("abbey road")

        assert services.requests[1].url.params["country"] == "UK"

    def test_candidates_bounded_to_ten(self):
        """Test that no more than ten candidates are ever returned."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=versions(25))

        candidates = make_client(services).search("abbey road")

        assert len(candidates) == 10
        assert candidates[0].id == 1000

    def test_max_candidates_cannot_exceed_ten(self):
        """Test that a larger configured bound is clamped."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=versions(25))

        candidates = make_client(services, max_candidates=50).search("abbey road")

        assert len(candidates) == 10

    def test_smaller_bound_respected(self):
        """Test a configured bound below ten."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=versions(25))

        assert len(make_client(services, max_candidates=3).search("abbey road")) == 3

    def test_releases_used_directly_without_master(self):
        """Test the flat variant when the best hit has no master grouping."""
        results = [
            {"id": 123, "type": "release", "title": "Abbey Road", "year": "1969", "format": ["Vinyl", "LP"]},
            {"id": 82730, "type": "artist", "title": "The Beatles"},
            {"id": 456, "type": "release", "title": "Abbey Road (Remaster)", "country": "EU"},
        ]
        services = FakeServices(search_results=results)

        candidates = make_client(services).search("abbey road")

        assert services.paths() == ["/database/search"]
        assert [c.id for c in candidates] == [123, 456]
        assert candidates[0].format == "Vinyl, LP"
        assert candidates[0].released == "1969"

    def test_no_results(self):
        """Test that an empty search yields no candidates and no second lookup."""
        services = FakeServices(search_results=[])

        assert make_client(services).search("blurry photo") == []
        assert services.paths() == ["/database/search"]

    def test_search_request(self):
        """Test the query, auth header and user agent of the search."""
        services = FakeServices(search_results=[])

        make_client(services).search("abbey road vinyl")

        request = services.requests[0]
        assert request.url.host == "api.discogs.com"
        assert request.url.params["q"] == "abbey road vinyl"
        assert request.headers["Authorization"] == "Discogs token=secret"
        assert request.headers["User-Agent"] == "AlbumTracker/digger"

    def test_malformed_results_raise_parse_error(self):
        """Test that a body without a results list is a parse failure."""
        client = make_client(lambda request: httpx.Response(200, json={"pagination": {}}))

        with pytest.raises(ParseError):
            client.search("abbey road")

    def test_version_without_id_raises_parse_error(self):
        """Test that a version lacking an id is a parse failure."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=[{"title": "Abbey Road"}])

        with pytest.raises(ParseError, match="versions"):
            make_client(services).search("abbey road")

    @pytest.mark.parametrize(
        "results",
        [
            ["oops"],
            [{"id": 1, "master_id": "abc"}],
            [{"id": "abc", "type": "master"}],
            [{"id": 123, "type": "release"}, "oops"],
        ],
    )
    def test_wrong_result_shapes_raise_parse_error(self, results):
        """Test that malformed search results are parse failures, not crashes."""
        services = FakeServices(search_results=results)

        with pytest.raises(ParseError):
            make_client(services).search("abbey road")

    def test_non_object_version_raises_parse_error(self):
        """Test that a version entry that is not an object is a parse failure."""
        services = FakeServices(search_results=[MASTER_RESULT], versions=["oops"])

        with pytest.raises(ParseError, match="versions"):
            make_client(services).search("abbey road")

    def test_rate_limited_raises_network_error(self):
        """Test that HTTP 429 is reported as a network failure."""
        client = make_client(lambda request: httpx.Response(429, json={"message": "slow down"}))

        with pytest.raises(NetworkError, match="429"):
            client.search("abbey road")

    def test_bad_token_raises_auth_error(self):
        """Test that a rejected token is an auth failure."""
        client = make_client(lambda request: httpx.Response(401, json={"message": "You must authenticate"}))

        with pytest.raises(AuthError):
            client.search("abbey road")


class TestAddToCollection:
    """Tests for DiscogsClient.add_to_collection()."""

    selection = Selection(index=0, candidate=CatalogCandidate(id=123, title="Abbey Road"))

    def test_posts_to_folder(self):
        """Test the endpoint and method of the collection write."""
        services = FakeServices()

        make_client(services).add_to_collection(self.selection)

        request = services.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/users/digger/collection/folders/1/releases/123"

    def test_custom_folder(self):
        """Test that the configured folder id is used."""
        services = FakeServices()

        make_client(services, folder_id=7).add_to_collection(self.selection)

        assert services.requests[0].url.path == "/users/digger/collection/folders/7/releases/123"

    def test_returns_created_entry(self):
        """Test that the response metadata is reported back."""
        entry = make_client(FakeServices()).add_to_collection(self.selection)

        assert entry.describe() == "The Beatles — Abbey Road (Vinyl)"
        assert entry.instance_id == 987654

    def test_unreadable_response_is_unconfirmed_write(self):
        """Test that a write without basic_information is reported but not undone."""
        services = FakeServices(add_response={"instance_id": 1, "resource_url": "https://api.discogs.com/..."})

        with pytest.raises(UnconfirmedWriteError) as excinfo:
            make_client(services).add_to_collection(self.selection)

        assert isinstance(excinfo.value, ParseError)
        assert excinfo.value.release_id == 123
        assert "submitted" in str(excinfo.value)
        assert [r.method for r in services.requests] == ["POST"]

    def test_non_json_response_is_unconfirmed_write(self):
        """Test that a non-JSON success body is reported as unconfirmed."""
        client = make_client(lambda request: httpx.Response(201, text="Created"))

        with pytest.raises(UnconfirmedWriteError):
            client.add_to_collection(self.selection)

    def test_server_error_raises_network_error(self):
        """Test that a rejected write is a network failure, not an unconfirmed one."""
        client = make_client(lambda request: httpx.Response(500, text="oops"))

        with pytest.raises(NetworkError):
            client.add_to_collection(self.selection)

    def test_forbidden_raises_auth_error(self):
        """Test that writing to someone else's collection is an auth failure."""
        client = make_client(lambda request: httpx.Response(403, json={"message": "forbidden"}))

        with pytest.raises(AuthError):
            client.add_to_collection(self.selection)

    def test_entry_matches_fixture(self):
        """Test the parsed fields against the stubbed response."""
        entry = make_client(FakeServices(add_response=ABBEY_ROAD_ENTRY)).add_to_collection(self.selection)

        assert (entry.artist, entry.title, entry.format) == ("The Beatles", "Abbey Road", "Vinyl")
