"""Tests for RuleManager commands."""

import json

import httpx
import pytest

from rulelist_core import CommandStatus, EditorSettings, InsertionPolicy, InvalidIndex, RuleManager
from rulelist_core.persistence import HttpPersister, MemoryPersister, SAVE_FAILED_NOTICE
from rulelist_core.rules import PersistFailure, default_transformer, default_validator


def names(manager):
    return [rule.match_value or rule.rule_type for rule in manager.rules]


@pytest.fixture
def notices():
    return []


@pytest.fixture
def manager(sample_rules, persister, renderer, notices):
    return RuleManager(
        persister,
        renderer,
        initial_rules=sample_rules,
        validator=default_validator,
        transformer=default_transformer,
        on_notice=notices.append,
    )


def make_manager(sample_rules, persister, **settings):
    return RuleManager(
        persister,
        settings=EditorSettings(**settings),
        initial_rules=sample_rules,
        validator=default_validator,
    )


class TestCreation:
    """Tests for RuleManager construction."""

    def test_renders_on_creation(self, manager, renderer):
        assert renderer.count == 1

    def test_empty_list_gets_final(self, persister):
        manager = RuleManager(persister)
        assert names(manager) == ["FINAL"]

    def test_without_final_rule(self, persister, make_rule):
        manager = RuleManager(
            persister,
            settings=EditorSettings(has_final_rule=False),
            initial_rules=[make_rule("a")],
        )
        assert names(manager) == ["a"]

    @pytest.mark.asyncio
    async def test_from_persister(self, sample_rules):
        persister = MemoryPersister()
        await persister.save({"rules": [rule.to_dict() for rule in sample_rules]})
        manager = await RuleManager.from_persister(persister)
        assert names(manager) == ["chrome", "curl", "10.0.0.0/8", "FINAL"]
        assert manager.rules[2].enabled is False

    @pytest.mark.asyncio
    async def test_from_persister_custom_key(self):
        persister = MemoryPersister()
        await persister.save({"response_rules": [{"type": "SRC-IP", "match_value": "1.1.1.1"}]})
        manager = await RuleManager.from_persister(
            persister, settings=EditorSettings(rule_key="response_rules")
        )
        assert names(manager) == ["1.1.1.1", "FINAL"]

    @pytest.mark.asyncio
    async def test_from_empty_persister(self):
        manager = await RuleManager.from_persister(MemoryPersister())
        assert names(manager) == ["FINAL"]

    @pytest.mark.asyncio
    async def test_attach_renderer(self, sample_rules, persister, renderer):
        manager = RuleManager(persister, initial_rules=sample_rules)
        manager.attach_renderer(renderer)
        assert renderer.count == 0
        await manager.move_rule_up(1)
        assert renderer.count == 1

    def test_rows(self, manager):
        rows = manager.rows()
        assert len(rows) == 4
        assert rows[-1].is_final


class TestAddRule:
    """Tests for adding rules."""

    @pytest.mark.asyncio
    async def test_add_before_final(self, manager, persister, renderer):
        result = await manager.add_rule({"match_value": "firefox", "action": "DIRECT"})
        assert result.ok
        assert result.index == 3
        assert names(manager) == ["chrome", "curl", "10.0.0.0/8", "firefox", "FINAL"]
        assert len(persister.saved) == 1
        assert renderer.count == 2

    @pytest.mark.asyncio
    async def test_add_at_head(self, sample_rules, persister):
        manager = make_manager(sample_rules, persister, insertion_policy=InsertionPolicy.AT_HEAD)
        result = await manager.add_rule({"match_value": "firefox", "action": "DIRECT"})
        assert result.index == 0
        assert names(manager)[0] == "firefox"
        assert names(manager)[-1] == "FINAL"

    @pytest.mark.asyncio
    async def test_add_strips_whitespace(self, manager):
        result = await manager.add_rule({"match_value": "  firefox  ", "action": "DIRECT"})
        assert result.rule.match_value == "firefox"

    @pytest.mark.asyncio
    async def test_added_rule_is_enabled(self, manager):
        result = await manager.add_rule({"match_value": "firefox", "action": "DIRECT"})
        assert manager.rules[result.index].enabled is True

    @pytest.mark.asyncio
    async def test_validation_failure(self, manager, persister):
        result = await manager.add_rule({"action": "DIRECT"})
        assert result.status is CommandStatus.INVALID
        assert result.message == "Match value is required"
        assert persister.attempts == 0
        assert len(manager.rules) == 4

    @pytest.mark.asyncio
    async def test_rewrite_value_required(self, manager):
        result = await manager.add_rule({"match_value": "x", "action": "REPLACE"})
        assert result.status is CommandStatus.INVALID
        assert result.message == "Rewrite value is required for this action"

    @pytest.mark.asyncio
    async def test_unknown_field(self, manager):
        result = await manager.add_rule({"bogus": 1})
        assert result.status is CommandStatus.INVALID
        assert result.message == "Unknown field: bogus"

    @pytest.mark.asyncio
    async def test_save_failure_rolls_back(self, manager, persister, renderer, notices):
        persister.fail = True
        result = await manager.add_rule({"match_value": "firefox", "action": "DIRECT"})
        assert result.status is CommandStatus.ROLLED_BACK
        assert result.message == SAVE_FAILED_NOTICE
        assert names(manager) == ["chrome", "curl", "10.0.0.0/8", "FINAL"]
        assert renderer.count == 2
        assert notices == [SAVE_FAILED_NOTICE]

    @pytest.mark.asyncio
    async def test_on_after_save(self, sample_rules, persister):
        results = []
        manager = RuleManager(persister, initial_rules=sample_rules, on_after_save=results.append)
        await manager.add_rule({"match_value": "firefox", "action": "DIRECT"})
        persister.fail = True
        await manager.add_rule({"match_value": "safari", "action": "DIRECT"})
        assert results == [True, False]


class TestEditRule:
    """Tests for editing rules."""

    @pytest.mark.asyncio
    async def test_update(self, manager):
        result = await manager.update_rule(1, {"match_value": "wget"})
        assert result.ok
        assert names(manager)[1] == "wget"

    @pytest.mark.asyncio
    async def test_update_preserves_enabled(self, manager):
        await manager.update_rule(2, {"match_value": "192.168.0.0/16"})
        assert manager.rules[2].enabled is False

    @pytest.mark.asyncio
    async def test_update_final(self, manager):
        result = await manager.update_rule(3, {"action": "REPLACE", "rewrite_value": "Mozilla/5.0"})
        assert result.ok
        final = manager.rules[-1]
        assert final.is_final
        assert final.action == "REPLACE"
        assert final.rewrite_value == "Mozilla/5.0"

    @pytest.mark.asyncio
    async def test_final_type_not_editable(self, manager):
        result = await manager.update_rule(3, {"type": "IP-CIDR"})
        assert result.status is CommandStatus.INVALID
        assert manager.rules[-1].is_final

    @pytest.mark.asyncio
    async def test_update_failure_restores_previous(self, manager, persister):
        persister.fail = True
        result = await manager.update_rule(1, {"match_value": "wget"})
        assert result.status is CommandStatus.ROLLED_BACK
        assert names(manager)[1] == "curl"

    @pytest.mark.asyncio
    async def test_invalid_index_ignored(self, manager, persister):
        result = await manager.update_rule(42, {"match_value": "x"})
        assert result.status is CommandStatus.NOOP
        assert persister.attempts == 0

    @pytest.mark.asyncio
    async def test_invalid_index_raises_in_debug(self, sample_rules, persister):
        manager = make_manager(sample_rules, persister, debug=True)
        with pytest.raises(InvalidIndex):
            await manager.update_rule(42, {"match_value": "x"})

    def test_edit_rule_invalid_index(self, manager):
        with pytest.raises(InvalidIndex):
            manager.edit_rule(10)


class TestDialog:
    """Tests for the dialog commands."""

    @pytest.mark.asyncio
    async def test_invalid_then_fixed(self, manager):
        session = manager.open_add_dialog()
        session.set_field("action", "DIRECT")
        result = await manager.save_from_dialog()
        assert result.status is CommandStatus.INVALID
        assert session.is_open

        session.set_field("match_value", "firefox")
        result = await manager.save_from_dialog()
        assert result.ok
        assert not session.is_open
        assert names(manager)[-2] == "firefox"

    @pytest.mark.asyncio
    async def test_save_without_dialog(self, manager):
        result = await manager.save_from_dialog()
        assert result.status is CommandStatus.NOOP

    @pytest.mark.asyncio
    async def test_close_dialog_discards_draft(self, manager, persister):
        session = manager.edit_rule(0)
        session.set_field("match_value", "changed")
        manager.close_dialog()
        assert not session.is_open
        assert names(manager)[0] == "chrome"
        assert (await manager.save_from_dialog()).status is CommandStatus.NOOP
        assert persister.attempts == 0

    def test_opening_replaces_previous_dialog(self, manager):
        first = manager.open_add_dialog()
        second = manager.edit_rule(0)
        assert not first.is_open
        assert second.is_open


class TestDeleteRule:
    """Tests for deleting rules."""

    @pytest.mark.asyncio
    async def test_delete(self, manager, persister):
        result = await manager.delete_rule(0)
        assert result.ok
        assert names(manager) == ["curl", "10.0.0.0/8", "FINAL"]
        assert len(persister.saved[-1]["rules"]) == 3

    @pytest.mark.asyncio
    async def test_delete_final_rejected(self, manager, persister):
        result = await manager.delete_rule(3)
        assert result.status is CommandStatus.REJECTED
        assert result.message == "FINAL rule cannot be deleted"
        assert persister.attempts == 0

    @pytest.mark.asyncio
    async def test_delete_disabled(self, sample_rules, persister):
        manager = make_manager(sample_rules, persister, allow_delete=False)
        result = await manager.delete_rule(0)
        assert result.status is CommandStatus.REJECTED
        assert len(manager.rules) == 4

    @pytest.mark.asyncio
    async def test_confirmation_declined(self, manager, persister):
        result = await manager.delete_rule(0, confirm=lambda: False)
        assert result.status is CommandStatus.NOOP
        assert len(manager.rules) == 4
        assert persister.attempts == 0

    @pytest.mark.asyncio
    async def test_confirmation_accepted(self, manager):
        result = await manager.delete_rule(0, confirm=lambda: True)
        assert result.ok

    @pytest.mark.asyncio
    async def test_delete_failure_restores_position(self, manager, persister):
        persister.fail = True
        result = await manager.delete_rule(1)
        assert result.status is CommandStatus.ROLLED_BACK
        assert names(manager) == ["chrome", "curl", "10.0.0.0/8", "FINAL"]

    @pytest.mark.asyncio
    async def test_delete_invalid_index(self, manager):
        result = await manager.delete_rule(99)
        assert result.status is CommandStatus.NOOP

    @pytest.mark.asyncio
    async def test_delete_invalid_index_debug(self, sample_rules, persister):
        manager = make_manager(sample_rules, persister, debug=True)
        with pytest.raises(InvalidIndex):
            await manager.delete_rule(99)


class TestMoveRule:
    """Tests for up/down moves."""

    @pytest.mark.asyncio
    async def test_move_up(self, manager):
        result = await manager.move_rule_up(1)
        assert result.ok
        assert result.index == 0
        assert names(manager)[:2] == ["curl", "chrome"]

    @pytest.mark.asyncio
    async def test_move_down(self, manager):
        result = await manager.move_rule_down(0)
        assert result.ok
        assert result.index == 1
        assert names(manager)[:2] == ["curl", "chrome"]

    @pytest.mark.asyncio
    async def test_boundary_moves_are_noops(self, manager, persister):
        assert (await manager.move_rule_up(0)).status is CommandStatus.NOOP
        assert (await manager.move_rule_down(2)).status is CommandStatus.NOOP
        assert (await manager.move_rule_up(3)).status is CommandStatus.NOOP
        assert persister.attempts == 0

    @pytest.mark.asyncio
    async def test_moves_disabled(self, sample_rules, persister):
        manager = make_manager(sample_rules, persister, allow_move=False)
        assert (await manager.move_rule_up(1)).status is CommandStatus.REJECTED
        assert (await manager.move_rule_down(0)).status is CommandStatus.REJECTED
        assert (await manager.relocate_rule(0, 2, True)).status is CommandStatus.REJECTED
        assert not manager.start_drag(0)

    @pytest.mark.asyncio
    async def test_move_failure_rolls_back(self, manager, persister):
        persister.fail = True
        result = await manager.move_rule_down(0)
        assert result.status is CommandStatus.ROLLED_BACK
        assert result.index == 0
        assert names(manager)[:2] == ["chrome", "curl"]


class TestDragRule:
    """Tests for drag relocation."""

    @pytest.mark.asyncio
    async def test_drag_and_drop(self, manager):
        assert manager.start_drag(0)
        assert manager.drag_over(2)
        assert not manager.drag_over(3)
        result = await manager.drop_rule(2, drop_after=True)
        assert result.ok
        assert result.index == 2
        assert names(manager) == ["curl", "10.0.0.0/8", "chrome", "FINAL"]
        assert not manager.drag.dragging

    def test_final_not_draggable(self, manager):
        assert not manager.start_drag(3)

    @pytest.mark.asyncio
    async def test_drop_without_drag(self, manager):
        result = await manager.drop_rule(1, drop_after=False)
        assert result.status is CommandStatus.NOOP

    @pytest.mark.asyncio
    async def test_drop_on_final_ignored(self, manager, persister):
        manager.start_drag(0)
        result = await manager.drop_rule(3, drop_after=True)
        assert result.status is CommandStatus.NOOP
        assert persister.attempts == 0

    def test_end_drag(self, manager):
        manager.start_drag(1)
        manager.end_drag()
        assert manager.drag.dragged_index == -1

    @pytest.mark.asyncio
    async def test_relocate_failure_restores_order(self, manager, persister):
        persister.fail = True
        result = await manager.relocate_rule(2, 0, drop_after=False)
        assert result.status is CommandStatus.ROLLED_BACK
        assert names(manager) == ["chrome", "curl", "10.0.0.0/8", "FINAL"]


class TestToggleRule:
    """Tests for enabling and disabling rules."""

    @pytest.mark.asyncio
    async def test_toggle(self, manager, persister):
        result = await manager.toggle_rule_enabled(0, False)
        assert result.ok
        assert manager.rules[0].enabled is False
        assert persister.saved[-1]["rules"][0]["enabled"] is False

    @pytest.mark.asyncio
    async def test_toggle_final_rejected(self, manager):
        result = await manager.toggle_rule_enabled(3, False)
        assert result.status is CommandStatus.REJECTED
        assert result.message == "FINAL rule is always enabled"
        assert manager.rules[3].enabled is True

    @pytest.mark.asyncio
    async def test_toggle_failure_reverts(self, manager, persister, renderer):
        persister.fail = True
        result = await manager.toggle_rule_enabled(2, True)
        assert result.status is CommandStatus.ROLLED_BACK
        assert manager.rules[2].enabled is False
        assert renderer.count == 2

    @pytest.mark.asyncio
    async def test_toggle_disabled(self, sample_rules, persister):
        manager = make_manager(sample_rules, persister, allow_toggle=False)
        result = await manager.toggle_rule_enabled(0, False)
        assert result.status is CommandStatus.REJECTED

    @pytest.mark.asyncio
    async def test_toggle_invalid_index(self, manager):
        result = await manager.toggle_rule_enabled(12, False)
        assert result.status is CommandStatus.NOOP


class TestRemoteList:
    """Tests for editing a list kept behind an HTTP endpoint."""

    @staticmethod
    def remote(sample_rules, posted, load_status=200):
        def handler(request):
            if request.method == "GET":
                if load_status != 200:
                    return httpx.Response(load_status)
                return httpx.Response(200, json={"rules": [rule.to_dict() for rule in sample_rules]})
            posted.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})

        return HttpPersister("http://router.local/save", transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_add_keeps_remote_rules(self, sample_rules):
        posted = []
        persister = self.remote(sample_rules, posted)
        manager = await RuleManager.from_persister(
            persister,
            validator=default_validator,
            transformer=default_transformer,
        )
        result = await manager.add_rule({"match_value": "firefox", "action": "DIRECT"})
        await persister.close()

        assert result.status is CommandStatus.OK
        rules = posted[-1]["rules"]
        assert len(rules) == 5
        assert {"chrome", "curl", "10.0.0.0/8", "firefox"} <= {r["match_value"] for r in rules}
        assert rules[-1]["type"] == "FINAL"

    @pytest.mark.asyncio
    async def test_failed_load_raises_without_saving(self, sample_rules):
        posted = []
        persister = self.remote(sample_rules, posted, load_status=500)
        with pytest.raises(PersistFailure):
            await RuleManager.from_persister(persister)
        await persister.close()
        assert posted == []
