"""Tests for pairwise merging and multi-source reduction."""

import pytest

from mcp_config_cli.merge import MergeInputError
from mcp_config_cli.merge import MergeOptions
from mcp_config_cli.merge import MergeStrategy
from mcp_config_cli.merge import descriptors_equal
from mcp_config_cli.merge import merge_configs
from mcp_config_cli.merge import merge_multiple
from mcp_config_cli.validation import ValidationIssue
from mcp_config_cli.validation import ValidationResult

ALL_STRATEGIES = list(MergeStrategy)


@pytest.fixture
def conflicting_pair(make_record):
    """Scenario B-D inputs: same service, different args."""
    target = make_record({"fs": {"command": "node", "args": ["a"]}})
    source = make_record({"fs": {"command": "node", "args": ["b"]}})
    return source, target


class TestScenarios:
    """Reference scenarios."""

    def test_new_service_into_empty_target(self, make_record):
        target = make_record()
        source = make_record({"fs": {"command": "npx", "args": ["-y", "pkg"]}})

        result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.MERGE))

        assert result.succeeded
        assert result.merged_record.services["fs"] == source.services["fs"]
        stats = result.stats
        assert (stats.total_source_services, stats.added, stats.updated, stats.skipped, stats.conflicted) == (
            1,
            1,
            0,
            0,
            0,
        )

    def test_skip_keeps_target_args(self, conflicting_pair):
        source, target = conflicting_pair

        result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.SKIP))

        assert result.merged_record.services["fs"].args == ["a"]
        assert result.stats.skipped == 1
        assert result.conflicts == ()

    def test_overwrite_takes_source_args(self, conflicting_pair):
        source, target = conflicting_pair

        result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.OVERWRITE))

        assert result.merged_record.services["fs"].args == ["b"]
        assert result.stats.updated == 1

    def test_defer_reports_conflict_and_keeps_target(self, conflicting_pair):
        source, target = conflicting_pair

        result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.DEFER))

        assert len(result.conflicts) == 1
        assert result.conflicts[0].service_name == "fs"
        assert result.conflicts[0].conflicting_fields == {"args"}
        assert result.merged_record.services["fs"] == target.services["fs"]
        assert result.stats.conflicted == 1
        assert result.stats.skipped == 0
        assert result.succeeded


class TestMergeProperties:
    """Properties that hold for every strategy."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_self_merge_is_idempotent(self, rich_record, strategy):
        result = merge_configs(rich_record, rich_record, MergeOptions(strategy=strategy))

        assert result.conflicts == ()
        merged = result.merged_record
        assert set(merged.services) == set(rich_record.services)
        for name, descriptor in rich_record.services.items():
            assert descriptors_equal(merged.services[name], descriptor)

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_self_merge_without_metadata_is_structurally_identical(self, rich_record, strategy):
        options = MergeOptions(strategy=strategy, preserve_metadata=False)

        result = merge_configs(rich_record, rich_record, options)

        assert result.merged_record.to_dict() == rich_record.to_dict()

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_new_services_are_always_added_unchanged(self, strategy, make_record):
        target = make_record({"shared": {"command": "a"}})
        source = make_record({"shared": {"command": "b"}, "fresh": {"command": "c", "env": {"K": "v"}}})

        result = merge_configs(source, target, MergeOptions(strategy=strategy))

        assert result.merged_record.services["fresh"] == source.services["fresh"]
        assert all(conflict.service_name != "fresh" for conflict in result.conflicts)

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_stats_invariant(self, strategy, make_record):
        target = make_record(
            {"same": {"command": "s"}, "diff1": {"command": "x"}, "diff2": {"command": "y", "args": ["1"]}}
        )
        source = make_record(
            {
                "same": {"command": "s"},
                "diff1": {"command": "z"},
                "diff2": {"command": "y", "args": ["2"]},
                "new": {"command": "n"},
            }
        )

        stats = merge_configs(source, target, MergeOptions(strategy=strategy)).stats

        assert stats.total_source_services == 4
        assert stats.total_source_services == stats.accounted

    def test_overwrite_exactness(self, make_record):
        target = make_record({"s": {"command": "a", "env": {"A": "1"}, "cwd": "/t"}})
        source = make_record({"s": {"command": "b"}})

        result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.OVERWRITE))

        assert result.merged_record.services["s"] == source.services["s"]
        assert "overwritten" in result.warnings[0]

    def test_skip_preservation(self, make_record):
        target = make_record({"s": {"command": "a", "env": {"A": "1"}}})
        source = make_record({"s": {"command": "b"}})

        result = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.SKIP))

        assert result.merged_record.services["s"] == target.services["s"]

    def test_target_only_services_are_kept(self, make_record):
        target = make_record({"keep": {"command": "k"}})
        source = make_record({"other": {"command": "o"}})

        result = merge_configs(source, target)

        assert list(result.merged_record.services) == ["keep", "other"]

    def test_inputs_are_never_mutated(self, rich_record, make_record):
        source = make_record({"github": {"command": "npx", "env": {"EXTRA": "1"}}})
        before = (source.to_dict(), rich_record.to_dict())

        result = merge_configs(source, rich_record, MergeOptions(strategy=MergeStrategy.MERGE))

        assert (source.to_dict(), rich_record.to_dict()) == before
        assert result.merged_record.services["github"].env == {"GITHUB_TOKEN": "ghp_x", "EXTRA": "1"}
        assert result.merged_record.services["sqlite"] is not rich_record.services["sqlite"]

    def test_schema_reference_is_carried_from_target(self, make_record):
        target = make_record({}, **{"$schema": "https://example.com/mcp.schema.json"})
        result = merge_configs(make_record({"a": {"command": "a"}}), target)
        assert result.merged_record.schema_ref == "https://example.com/mcp.schema.json"


class TestVersionAndMetadata:
    """Record-level version and metadata reconciliation."""

    @pytest.mark.parametrize(
        "source_version,target_version,expected",
        [
            ("1.10.0", "1.2.0", "1.10.0"),
            ("1.2.0", "1.10.0", "1.10.0"),
            ("2.0", None, "2.0"),
            (None, "1.0.0", "1.0.0"),
            (None, None, None),
        ],
    )
    def test_newer_version_wins(self, source_version, target_version, expected, make_record):
        source = make_record(version=source_version) if source_version else make_record()
        target = make_record(version=target_version) if target_version else make_record()

        assert merge_configs(source, target).merged_record.version == expected

    def test_metadata_combined_when_preserved(self, make_record):
        source = make_record(metadata={"createdBy": "src", "checksum": "abc"})
        target = make_record(metadata={"createdBy": "tgt", "createdAt": 5, "lastModified": 6})

        metadata = merge_configs(source, target, MergeOptions(preserve_metadata=True)).merged_record.metadata

        assert metadata.created_by == "src"
        assert metadata.created_at == 5
        assert metadata.checksum == "abc"
        assert metadata.last_modified > 6

    def test_target_metadata_kept_when_not_preserved(self, make_record):
        source = make_record(metadata={"createdBy": "src"})
        target = make_record(metadata={"createdBy": "tgt"})

        metadata = merge_configs(source, target, MergeOptions(preserve_metadata=False)).merged_record.metadata

        assert metadata.created_by == "tgt"

    def test_no_metadata_on_either_side(self, make_record):
        result = merge_configs(make_record(), make_record(), MergeOptions(preserve_metadata=True))
        assert result.merged_record.metadata is None


class _RejectingValidator:
    def validate(self, record):
        return ValidationResult(
            errors=[ValidationIssue(field="command", message="bad command", service_name="x")],
            warnings=[ValidationIssue(field="env", message="odd env")],
        )


class _BrokenValidator:
    def validate(self, record):
        raise RuntimeError("validator crashed")


class TestValidationStep:
    """Optional validation of the merged record."""

    def test_validation_skipped_by_default(self, make_record):
        source = make_record({"bad name": {"command": ""}})
        result = merge_configs(source, make_record())
        assert result.succeeded
        assert result.errors == ()

    def test_default_validator_reports_errors_but_returns_record(self, make_record):
        source = make_record({"bad name": {"command": ""}})

        result = merge_configs(source, make_record(), MergeOptions(validate_result=True))

        assert not result.succeeded
        assert result.merged_record is not None
        assert "bad name" in result.merged_record.services
        assert any("command" in error for error in result.errors)

    def test_custom_validator(self, make_record):
        result = merge_configs(
            make_record({"x": {"command": "x"}}),
            make_record(),
            MergeOptions(validate_result=True),
            validator=_RejectingValidator(),
        )

        assert not result.succeeded
        assert result.errors == ('Service "x": bad command',)
        assert result.warnings == ("odd env",)

    def test_validator_exception_is_reported_as_error(self, caplog, make_record):
        result = merge_configs(
            make_record({"x": {"command": "x"}}),
            make_record(),
            MergeOptions(validate_result=True),
            validator=_BrokenValidator(),
        )

        assert not result.succeeded
        assert "validator crashed" in result.errors[0]
        assert "Validator raised" in caplog.text


class TestMergeMultiple:
    """Left fold over an ordered list of records."""

    def test_empty_list_is_an_error(self):
        with pytest.raises(MergeInputError):
            merge_multiple([])

    def test_single_record_passes_through(self, rich_record):
        result = merge_multiple([rich_record])

        assert result.succeeded
        assert result.merged_record == rich_record
        assert result.merged_record is not rich_record
        assert result.stats.total_source_services == 2
        assert result.stats.accounted == 0

    def test_later_records_merge_into_earlier(self, make_record):
        base = make_record({"a": {"command": "a"}})
        second = make_record({"b": {"command": "b"}})
        third = make_record({"c": {"command": "c"}, "a": {"command": "a", "env": {"K": "1"}}})

        result = merge_multiple([base, second, third], MergeOptions(strategy=MergeStrategy.DEFER))

        assert list(result.merged_record.services) == ["a", "b", "c"]
        assert result.conflicts[0].service_name == "a"
        assert result.stats.total_source_services == 3
        assert result.stats.added == 2
        assert result.stats.conflicted == 1

    def test_overwrite_last_record_wins(self, make_record):
        records = [make_record({"s": {"command": str(i)}}) for i in range(3)]

        result = merge_multiple(records, MergeOptions(strategy=MergeStrategy.OVERWRITE))

        assert result.merged_record.services["s"].command == "2"
        assert len(result.warnings) == 2
        assert result.stats.updated == 2

    def test_conflicts_accumulate_across_steps(self, make_record):
        records = [make_record({"s": {"command": str(i)}}) for i in range(3)]

        result = merge_multiple(records, MergeOptions(strategy=MergeStrategy.DEFER))

        assert len(result.conflicts) == 2
        assert result.merged_record.services["s"].command == "0"

    def test_success_is_and_of_all_steps(self, make_record):
        records = [make_record(), make_record({"ok": {"command": "x"}}), make_record({"bad": {"command": ""}})]

        result = merge_multiple(records, MergeOptions(validate_result=True))

        assert not result.succeeded
        assert len(result.errors) == 1
        assert "bad" in result.merged_record.services

    def test_stats_are_summed(self, make_record):
        records = [
            make_record({"a": {"command": "a"}}),
            make_record({"a": {"command": "a"}, "b": {"command": "b"}}),
            make_record({"b": {"command": "x"}, "c": {"command": "c"}}),
        ]

        stats = merge_multiple(records, MergeOptions(strategy=MergeStrategy.SKIP)).stats

        assert stats.total_source_services == 4
        assert stats.added == 2
        assert stats.updated == 1
        assert stats.skipped == 1
        assert stats.accounted == stats.total_source_services


class TestResultReport:
    """Serialized report of a merge result."""

    def test_report_carries_stats_and_conflicts(self, conflicting_pair):
        source, target = conflicting_pair

        report = merge_configs(source, target, MergeOptions(strategy=MergeStrategy.DEFER)).to_dict()

        assert report["success"] is True
        assert report["stats"] == {
            "totalServices": 1,
            "addedServices": 0,
            "updatedServices": 0,
            "skippedServices": 0,
            "conflictServices": 1,
        }
        conflict = report["conflicts"][0]
        assert conflict["serviceName"] == "fs"
        assert conflict["type"] == "different-config"
        assert conflict["conflictingFields"] == ["args"]
        assert conflict["sourceConfig"] == {"command": "node", "args": ["b"]}
        assert conflict["targetConfig"] == {"command": "node", "args": ["a"]}

    def test_report_lists_messages(self, make_record):
        report = merge_configs(
            make_record({"bad": {"command": ""}}), make_record(), MergeOptions(validate_result=True)
        ).to_dict()

        assert report["success"] is False
        assert len(report["errors"]) == 1
        assert report["warnings"] == []
