"""Tests for entity and model selection."""

import logging

import pytest

from bsp2obj.bsp_parser import Entity
from bsp2obj.entity_selector import (
    Skip,
    UseModel,
    classify_entity,
    parse_model_reference,
    select_models,
)
from bsp2obj.vector import Vector3


def entity(classname, **properties):
    properties["classname"] = classname
    return Entity(classname=classname, properties=properties)


class TestParseModelReference:
    """Tests for parse_model_reference."""

    @pytest.mark.parametrize("value, expected", [("*1", 1), ("*12", 12), ("*0", 0)])
    def test_valid(self, value, expected):
        assert parse_model_reference(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["1", "*", "*abc", "*-1", "* 2", "*2x", "models/player.mdl", "sprites/glow.spr"],
    )
    def test_malformed(self, value):
        assert parse_model_reference(value) is None


class TestClassifyEntity:
    """Tests for classify_entity."""

    def test_world_entity(self):
        selection = classify_entity(entity("worldspawn"), 0, model_count=3)

        assert selection == UseModel(0, Vector3.zero())

    def test_world_entity_ignores_origin(self):
        selection = classify_entity(entity("worldspawn", origin="10 20 30"), 0, model_count=3)

        assert selection == UseModel(0, Vector3.zero())

    def test_redundant_worldspawn(self):
        selection = classify_entity(entity("worldspawn"), 1, model_count=3)

        assert isinstance(selection, Skip)

    def test_brush_entity_with_origin(self):
        door = entity("func_door", model="*2", origin="16 -32 8")
        selection = classify_entity(door, 4, model_count=3)

        assert selection == UseModel(2, Vector3(16.0, -32.0, 8.0))

    def test_brush_entity_without_origin(self):
        selection = classify_entity(entity("func_wall", model="*1"), 1, model_count=3)

        assert selection == UseModel(1, Vector3.zero())

    def test_world_model_reserved(self):
        selection = classify_entity(entity("func_wall", model="*0"), 1, model_count=3)

        assert isinstance(selection, Skip)

    def test_model_out_of_range(self):
        selection = classify_entity(entity("func_wall", model="*7"), 1, model_count=3)

        assert isinstance(selection, Skip)

    def test_last_model_in_range(self):
        selection = classify_entity(entity("func_wall", model="*2"), 1, model_count=3)

        assert selection.model_number == 2

    def test_point_entity(self):
        selection = classify_entity(entity("info_player_start", origin="0 0 36"), 1, model_count=3)

        assert isinstance(selection, Skip)

    def test_studio_model_reference(self):
        selection = classify_entity(entity("cycler", model="models/scientist.mdl"), 1, model_count=3)

        assert isinstance(selection, Skip)

    def test_malformed_origin_falls_back_to_zero(self, caplog):
        door = entity("func_door", model="*1", origin="16 32")
        with caplog.at_level(logging.WARNING):
            selection = classify_entity(door, 1, model_count=2)

        assert selection == UseModel(1, Vector3.zero())
        assert "malformed origin" in caplog.text

    def test_first_entity_not_worldspawn(self, caplog):
        with caplog.at_level(logging.WARNING):
            selection = classify_entity(entity("func_wall", model="*1"), 0, model_count=2)

        assert selection == UseModel(0, Vector3.zero())
        assert "expected 'worldspawn'" in caplog.text

    def test_map_without_models(self):
        selection = classify_entity(entity("worldspawn"), 0, model_count=0)

        assert isinstance(selection, Skip)


class TestSelectModels:
    """Tests for select_models."""

    def test_duplicate_worldspawn_selected_once(self):
        entities = [entity("worldspawn"), entity("worldspawn"), entity("info_player_start")]
        selections = list(select_models(entities, model_count=1))

        assert selections == [UseModel(0, Vector3.zero())]

    def test_entity_order_preserved(self):
        entities = [
            entity("worldspawn"),
            entity("func_door", model="*2", origin="0 0 8"),
            entity("light", origin="0 0 64"),
            entity("func_wall", model="*1"),
            entity("func_button", model="*9"),
        ]
        selections = list(select_models(entities, model_count=3))

        assert [s.model_number for s in selections] == [0, 2, 1]
        assert selections[1].origin == Vector3(0.0, 0.0, 8.0)

    def test_same_model_referenced_twice(self):
        entities = [
            entity("worldspawn"),
            entity("func_wall", model="*1"),
            entity("func_illusionary", model="*1", origin="64 0 0"),
        ]
        selections = list(select_models(entities, model_count=2))

        assert [s.model_number for s in selections] == [0, 1, 1]

    def test_custom_world_classname(self):
        entities = [entity("world"), entity("world")]
        selections = list(select_models(entities, model_count=1, world_classname="world"))

        assert len(selections) == 1
