from datetime import datetime, timezone
import logging
import pathlib
import shutil

import pytest

from elasdx.middleware.provision import update_template_and_create_index, update_templates_and_create_indices
from elasdx.models.errors import ClusterOperationError, ProvisioningError, TemplateFileError
from elasdx.models.reporter import Action, Category, RecordingReporter
from elasdx.models.template import BULK_INDEXING_SETTINGS
from tests.utils import FakeAdminClient

TEMPLATES_DIRECTORY = pathlib.Path(__file__).parent / "data" / "templates"
TWITTER_TEMPLATE = str(TEMPLATES_DIRECTORY / "twitter.json")
NOW = datetime(2019, 3, 4, 15, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def client():
    return FakeAdminClient()


@pytest.fixture
def reporter():
    return RecordingReporter()


def test_template_is_pushed_and_index_created(client, reporter):
    index = update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, now=NOW)

    assert index == "twitter-2019-03-04-15-04-05"
    assert client.templates["twitter"] == pathlib.Path(TWITTER_TEMPLATE).read_text()
    assert index in client.indices
    assert client.operations() == ["put_template", "index_exists", "create_index"]
    assert reporter.lines() == [
        "INDEX TEMPLATE   Updated     twitter",
        "INDEX            Created     twitter-2019-03-04-15-04-05",
    ]


def test_dest_index_overrides_generated_name(client, reporter):
    index = update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, dest_index="tweets",
                                             extra_suffix="ignored", now=NOW)
    assert index == "tweets"


def test_extra_suffix_is_appended(client, reporter):
    index = update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, extra_suffix="v7", now=NOW)
    assert index == "twitter-2019-03-04-15-04-05-v7"


def test_existing_index_is_not_an_error(client, reporter):
    client.add_index("tweets")

    assert update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, dest_index="tweets") == "tweets"
    assert "create_index" not in client.operations()
    assert reporter.events[-1].action == Action.EXISTS


def test_bulk_indexing_tunes_new_index(client, reporter):
    index = update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, bulk_indexing=True, now=NOW)

    assert client.calls[-1] == ("put_settings", index, BULK_INDEXING_SETTINGS)
    assert reporter.events[-1].category == Category.SETTINGS


def test_include_type_name_is_passed_through(client, reporter):
    update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, include_type_name=True, now=NOW)
    assert client.calls[0] == ("put_template", "twitter", True)


def test_provisioning_twice_repushes_template_with_a_new_index(client, reporter):
    first = update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, now=NOW)
    second = update_template_and_create_index(client, TWITTER_TEMPLATE, reporter,
                                              now=NOW.replace(second=6))

    assert first != second
    assert list(client.templates) == ["twitter"]
    assert client.operations().count("put_template") == 2


def test_missing_file_fails_before_any_cluster_call(client, reporter, tmp_path):
    with pytest.raises(TemplateFileError):
        update_template_and_create_index(client, str(tmp_path / "missing.json"), reporter)
    assert client.calls == []


def test_cluster_failure_propagates(client, reporter):
    client.failures["create_index"] = ClusterOperationError("creating index", "twitter-1")

    with pytest.raises(ClusterOperationError):
        update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, now=NOW)
    # The template update is not rolled back
    assert "twitter" in client.templates


def test_directory_of_templates(client, reporter):
    alias_to_new_index = update_templates_and_create_indices(client, str(TEMPLATES_DIRECTORY), reporter)

    assert list(alias_to_new_index) == ["facebook", "twitter"]
    for alias, index in alias_to_new_index.items():
        assert index.startswith(f"{alias}-")
        assert index in client.indices


def test_directory_aborts_on_first_failure(client, reporter, tmp_path):
    shutil.copy(TEMPLATES_DIRECTORY / "facebook.json", tmp_path / "a.json")
    (tmp_path / "b.json").write_text("not json")
    shutil.copy(TEMPLATES_DIRECTORY / "twitter.json", tmp_path / "c.json")

    with pytest.raises(ProvisioningError) as excinfo:
        update_templates_and_create_indices(client, str(tmp_path), reporter)
    assert excinfo.value.path.endswith("b.json")
    assert list(client.templates) == ["a"]


def test_missing_directory(client, reporter, tmp_path):
    with pytest.raises(ProvisioningError):
        update_templates_and_create_indices(client, str(tmp_path / "nope"), reporter)


def test_directory_names_the_template_with_non_object_settings(client, reporter, tmp_path):
    (tmp_path / "logs.json").write_text('{"index_patterns": ["logs-*"], "settings": ["a"]}')

    with pytest.raises(ProvisioningError) as excinfo:
        update_templates_and_create_indices(client, str(tmp_path), reporter)
    assert excinfo.value.path.endswith("logs.json")
    assert isinstance(excinfo.value.__cause__, TemplateFileError)
    assert client.calls == []


def test_index_patterns_are_logged_when_template_is_pushed(client, reporter, caplog):
    with caplog.at_level(logging.INFO, logger="elasdx.middleware.provision"):
        update_template_and_create_index(client, TWITTER_TEMPLATE, reporter, now=NOW)
    assert "Template twitter applies to index patterns ['twitter-*']" in caplog.text
