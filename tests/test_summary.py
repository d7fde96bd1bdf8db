"""Tests for clone summary naming."""

import pytest

from jira_ticket_cloner.models import TargetSpec
from jira_ticket_cloner.summary import transform_summary


@pytest.mark.unit
class TestTransformSummary:
    def test_strip_policy_removes_first_group(self) -> None:
        target = TargetSpec(project="OPS", naming="strip", client="Acme")
        assert transform_summary(target, "[QA] Fix login bug") == "Fix login bug"

    def test_strip_policy_removes_every_group(self) -> None:
        target = TargetSpec(project="OPS", naming="strip")
        assert transform_summary(target, "  [QA][Web] Fix [urgent] login bug [v2]") == "Fix login bug"

    @pytest.mark.parametrize(
        ("title", "expected"),
        [("Fix[QA] bug", "Fix bug"), ("Fix[QA]bug", "Fix bug"), ("Fix [QA]  [Web] bug", "Fix bug")],
    )
    def test_strip_policy_keeps_words_apart(self, title: str, expected: str) -> None:
        target = TargetSpec(project="OPS", naming="strip")
        assert transform_summary(target, title) == expected

    def test_prefix_policy_replaces_first_group(self) -> None:
        target = TargetSpec(project="ACME", client="Acme")
        assert transform_summary(target, "[QA] Fix login bug") == "[Acme] Fix login bug"

    def test_prefix_policy_without_group(self) -> None:
        target = TargetSpec(project="ACME", client="Acme")
        assert transform_summary(target, "Fix login bug") == "[Acme] Fix login bug"

    def test_prefix_policy_without_client(self) -> None:
        target = TargetSpec(project="ACME")
        assert transform_summary(target, "[QA] Fix login bug") == "Fix login bug"

    def test_prefix_policy_only_removes_leading_group(self) -> None:
        target = TargetSpec(project="ACME", client="Acme")
        assert transform_summary(target, "[QA] Fix [web] login bug") == "[Acme] Fix [web] login bug"

    def test_group_not_at_start_is_kept(self) -> None:
        target = TargetSpec(project="ACME", client="Acme")
        assert transform_summary(target, "Fix login bug [QA]") == "[Acme] Fix login bug [QA]"

    def test_leading_whitespace_before_group(self) -> None:
        target = TargetSpec(project="ACME", client="Acme")
        assert transform_summary(target, "   [QA]   Fix login bug") == "[Acme] Fix login bug"

    def test_first_client_of_list_is_used(self) -> None:
        target = TargetSpec(project="ACME", client=("Acme", "Globex"))
        assert transform_summary(target, "[QA] Fix login bug") == "[Acme] Fix login bug"

    def test_empty_client_list_adds_no_prefix(self) -> None:
        target = TargetSpec(project="ACME", client=())
        assert transform_summary(target, "[QA] Fix login bug") == "Fix login bug"

    def test_missing_target_or_title(self) -> None:
        target = TargetSpec(project="ACME", client="Acme")
        assert transform_summary(None, "[QA] Fix login bug") == "[QA] Fix login bug"
        assert transform_summary(target, None) is None
