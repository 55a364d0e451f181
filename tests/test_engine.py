"""
Tests for the puzzle engine.

Scenarios drive the engine with pointer events inside asyncio.run and use
InstantClock so match resolutions complete without real waiting.
"""

import asyncio
import json

import pytest

from langlines.engine import GameConfig, PointerEvent, PuzzleEngine, InstantClock, EngineBusyError
from langlines.lexicon import DictionaryIndex, WordEntry


def make_index() -> DictionaryIndex:
    index = DictionaryIndex()
    index.register_language("en", {
        "DOG": WordEntry(definition="A domesticated mammal.", translations={"es": "PERRO"}),
        "CASA": WordEntry(definition="A Southwestern house."),
        "CAT": WordEntry(definition="A small feline."),
    })
    index.register_language("es", {
        "CASA": WordEntry(definition="Edificio para habitar."),
        "OSO": WordEntry(definition="Mamífero grande."),
    })
    return index


def make_engine(*rows: str, **config_kwargs) -> tuple[PuzzleEngine, list]:
    """Engine over a fixed layout, with a list collecting every event."""
    config = GameConfig(rows=len(rows), cols=len(rows[0]), seed=0, **config_kwargs)
    engine = PuzzleEngine.create(config, index=make_index(), clock=InstantClock())
    engine.grid.load_letters(list(rows))
    events = []
    engine.subscribe(events.append)
    return engine, events


def trace(engine: PuzzleEngine, *cells):
    """Run a full gesture through the given cells and return the outcome."""
    engine.push_event(PointerEvent.down(*cells[0]))
    for cell in cells[1:]:
        engine.push_event(PointerEvent.move(*cell))
    return engine.push_event(PointerEvent.up())


def kinds(events) -> list:
    return [e.kind for e in events]


class TestWordSubmission:
    """Test cases for committing traced words."""

    def test_unknown_word_rejected(self):
        """A word in no dictionary is rejected without touching the grid."""
        engine, events = make_engine("XQZ", "DOG", "CAT")
        before = engine.grid.letters()

        outcome = trace(engine, (0, 0), (0, 1), (0, 2))

        assert not outcome.matched
        assert outcome.selection.word == "XQZ"
        assert engine.grid.letters() == before
        assert not engine.is_busy
        assert events[-1].kind == "word_rejected"

    def test_home_language_match(self):
        """A home-language word scores one point per letter."""
        engine, _ = make_engine("XQZ", "DOG", "CAT")

        async def scenario():
            outcome = trace(engine, (1, 0), (1, 1), (1, 2))
            await engine.wait_until_idle()
            return outcome

        outcome = asyncio.run(scenario())
        assert outcome.matched
        assert outcome.matched_language == "en"
        assert outcome.score.total == 3

    def test_learning_language_priority(self):
        """CASA is in both dictionaries and resolves to the learning language."""
        engine, _ = make_engine("CAS", "QQA", "XXZ")

        async def scenario():
            outcome = trace(engine, (0, 0), (0, 1), (0, 2), (1, 2))
            await engine.wait_until_idle()
            return outcome

        outcome = asyncio.run(scenario())
        assert outcome.matched_language == "es"
        assert outcome.score.total == 12

    def test_multipliers_applied(self):
        """Multiplier tiles on the path multiply the score."""
        engine, _ = make_engine("OSO", "XXX", "ZZZ")
        engine.grid.tile_at(0, 0).multiplier = 2
        engine.grid.tile_at(0, 2).multiplier = 3

        async def scenario():
            outcome = trace(engine, (0, 0), (0, 1), (0, 2))
            await engine.wait_until_idle()
            return outcome

        outcome = asyncio.run(scenario())
        assert outcome.selection.multipliers == [2, 3]
        assert outcome.score.total == 3 * 3 * 2 * 3
        assert outcome.score.describe() == "+9 *2 *3 = 54"

    def test_min_word_length(self):
        """Words shorter than the configured minimum are rejected."""
        engine, _ = make_engine("DOG", "XXX", "ZZZ", min_word_length=4)
        outcome = trace(engine, (0, 0), (0, 1), (0, 2))
        assert not outcome.matched
        assert "shorter" in outcome.reason


class TestResolution:
    """Test cases for the match resolution lifecycle."""

    def test_event_sequence(self):
        """A match emits matched, both physics phases, then completion."""
        engine, events = make_engine("XQZ", "XQZ", "DOG")

        async def scenario():
            trace(engine, (2, 0), (2, 1), (2, 2))
            await engine.wait_until_idle()

        asyncio.run(scenario())
        tail = kinds(events)[kinds(events).index("word_matched"):]
        assert tail == ["word_matched", "gravity_started", "compaction_started", "resolution_complete"]
        assert events[-1].report.lines_cleared == 1

    def test_busy_until_resolution_complete(self):
        """Input and structural requests are refused while resolving."""
        engine, _ = make_engine("XQZ", "XQZ", "DOG")

        async def scenario():
            trace(engine, (2, 0), (2, 1), (2, 2))
            assert engine.is_busy

            engine.push_event(PointerEvent.down(0, 0))
            assert engine.tracker.state == "idle"
            assert engine.reload() is False
            assert engine.shuffle() is False
            with pytest.raises(EngineBusyError):
                engine.start()

            report = await engine.wait_until_idle()
            assert not engine.is_busy
            return report

        report = asyncio.run(scenario())
        assert report.lines_cleared == 1
        assert engine.grid.letters() == ["...", "XQZ", "XQZ"]

    def test_input_accepted_after_resolution(self):
        """Selections work again once the resolution completes."""
        engine, _ = make_engine("XQZ", "XQZ", "DOG")

        async def scenario():
            trace(engine, (2, 0), (2, 1), (2, 2))
            await engine.wait_until_idle()
            engine.push_event(PointerEvent.down(2, 0))
            return engine.tracker.path

        assert asyncio.run(scenario()) == [(2, 0)]

    def test_wait_when_idle(self):
        """Waiting with nothing pending returns immediately."""
        engine, _ = make_engine("XQZ", "XQZ", "DOG")
        assert asyncio.run(engine.wait_until_idle()) is None

    def test_physics_waits_use_clock(self):
        """Gravity and compaction both wait on the engine clock."""
        engine, _ = make_engine("AXQ", "BXQ", "CXQ")
        engine.index.register_language("en", {"XXX": WordEntry()})

        async def scenario():
            trace(engine, (0, 1), (1, 1), (2, 1))
            await engine.wait_until_idle()

        asyncio.run(scenario())
        assert engine.clock.waits == [pytest.approx(0.2)]
        assert engine.grid.letters() == [".AQ", ".BQ", ".CQ"]

    def test_end_to_end_eight_by_eight(self):
        """A 3-letter home-language word on an 8x8 grid scores 3 and settles."""
        rows = ["QZXQZXQZ"] * 7 + ["DOGQZXQZ"]
        engine, _ = make_engine(*rows)

        async def scenario():
            outcome = trace(engine, (7, 0), (7, 1), (7, 2))
            report = await engine.wait_until_idle()
            return outcome, report

        outcome, report = asyncio.run(scenario())
        assert outcome.score.base == 3
        assert outcome.score.multipliers == []
        assert outcome.score.total == 3
        assert engine.grid.tile_count == 61
        assert engine.grid.letters()[0] == "...QZXQZ"
        assert report.lines_cleared == engine.lines_cleared() == 0
        assert not engine.is_grid_empty()


class TestSelectionNotifications:
    """Test cases for live selection feedback."""

    def test_selection_changed_on_each_step(self):
        """Every extend and retract emits the word so far."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        engine.push_event(PointerEvent.down(0, 0))
        engine.push_event(PointerEvent.move(0, 1))
        engine.push_event(PointerEvent.move(0, 0))
        words = [e.word for e in events if e.kind == "selection_changed"]
        assert words == ["D", "DO", "D"]

    def test_preview_for_known_word(self):
        """A known word of three or more letters carries a score preview."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        engine.push_event(PointerEvent.down(0, 0))
        engine.push_event(PointerEvent.move(0, 1))
        engine.push_event(PointerEvent.move(0, 2))
        last = events[-1]
        assert last.word == "DOG"
        assert last.preview.headline() == "DOG (EN) +3"

    def test_no_preview_for_short_or_unknown(self):
        """Short or unknown selections carry no preview."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        engine.push_event(PointerEvent.down(0, 0))
        engine.push_event(PointerEvent.move(1, 0))
        engine.push_event(PointerEvent.move(2, 0))
        assert all(e.preview is None for e in events)


class TestInteractivity:
    """Test cases for enabling and disabling input."""

    def test_disable_clears_selection(self):
        """Disabling input cancels the gesture and emits an empty selection."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        engine.push_event(PointerEvent.down(0, 0))
        engine.set_interactive(False)
        assert engine.tracker.state == "idle"
        changed = [e for e in events if e.kind == "selection_changed"]
        assert changed[-1].word == ""

    def test_disable_is_idempotent(self):
        """Disabling twice notifies the state change once, the empty selection twice."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        engine.set_interactive(False)
        engine.set_interactive(False)
        assert kinds(events).count("interactive_changed") == 1
        assert kinds(events).count("selection_changed") == 2
        assert not engine.interactive

    def test_events_ignored_when_disabled(self):
        """Pointer events do nothing while input is disabled."""
        engine, _ = make_engine("DOG", "XXX", "ZZZ")
        engine.set_interactive(False)
        assert engine.push_event(PointerEvent.down(0, 0)) is None
        assert engine.tracker.state == "idle"
        assert engine.reload() is False

    def test_reenable(self):
        engine, _ = make_engine("DOG", "XXX", "ZZZ")
        engine.set_interactive(False)
        engine.set_interactive(True)
        engine.push_event(PointerEvent.down(0, 0))
        assert engine.tracker.path == [(0, 0)]


class TestStructuralRequests:
    """Test cases for reload and shuffle requests."""

    def test_reload_cancels_selection(self):
        """Reloading mid-gesture drops the gesture and rebuilds the grid."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        engine.push_event(PointerEvent.down(0, 0))
        assert engine.reload() is True
        assert engine.tracker.state == "idle"
        assert engine.grid.tile_count == 9
        assert len(engine.grid.special_cells()) == 5
        assert events[-1].kind == "grid_reloaded"

    def test_shuffle(self):
        """Shuffling keeps the same letters."""
        engine, events = make_engine("DOG", "XXX", "ZZZ")
        assert engine.shuffle() is True
        assert sorted("".join(engine.grid.letters())) == sorted("DOGXXXZZZ")
        assert events[-1].kind == "grid_shuffled"

    def test_start_regenerates_grid(self):
        """Starting a round fills the grid and enables input."""
        engine, _ = make_engine("DOG", "...", "...")
        engine.set_interactive(False)
        engine.start()
        assert engine.interactive
        assert engine.grid.tile_count == 9


class TestDictionaryLoading:
    """Test cases for loading dictionaries through the engine."""

    def test_partial_load_keeps_engine_usable(self, tmp_path):
        """With only one dictionary loaded the engine still validates words."""
        (tmp_path / "es.json").write_text(json.dumps({"OSO": {"def": "Mamífero."}}), encoding="utf-8")
        config = GameConfig(rows=3, cols=3, seed=0, dictionary_dir=str(tmp_path))
        engine = PuzzleEngine.create(config, index=DictionaryIndex(), clock=InstantClock())
        engine.grid.load_letters(["OSO", "DOG", "XXX"])

        async def scenario():
            report = await engine.load_dictionaries()
            rejected = trace(engine, (1, 0), (1, 1), (1, 2))
            matched = trace(engine, (0, 0), (0, 1), (0, 2))
            await engine.wait_until_idle()
            return report, rejected, matched

        report, rejected, matched = asyncio.run(scenario())
        assert "en" in report.failed
        assert report.loaded == {"es": 1}
        assert not rejected.matched
        assert matched.matched_language == "es"

    def test_reload_dictionaries(self, tmp_path):
        """Reloading clears and loads the dictionaries again."""
        (tmp_path / "en.json").write_text(json.dumps(["CAT"]), encoding="utf-8")
        (tmp_path / "es.json").write_text(json.dumps(["GATO"]), encoding="utf-8")
        config = GameConfig(rows=3, cols=3, dictionary_dir=str(tmp_path))
        engine = PuzzleEngine.create(config, index=make_index(), clock=InstantClock())

        report = asyncio.run(engine.reload_dictionaries())
        assert report.ok
        assert engine.index.languages == ["en", "es"]
        assert engine.index.check_word("DOG") is None
        assert engine.index.check_word("GATO").matched_language == "es"

    def test_bundled_dictionaries_by_default(self):
        """Without a dictionary_dir the bundled samples are used."""
        engine = PuzzleEngine.create(GameConfig(), clock=InstantClock())
        report = asyncio.run(engine.load_dictionaries())
        assert report.ok
        assert engine.index.check_word("CASA", "es").matched_language == "es"


class TestWithoutEventLoop:
    """Test cases for matches committed outside a running loop."""

    def test_match_fails_before_any_change(self):
        """A match with no running loop raises without emitting, scoring or removing."""
        engine, events = make_engine("XQZ", "XQZ", "DOG")

        with pytest.raises(RuntimeError):
            trace(engine, (2, 0), (2, 1), (2, 2))

        assert "word_matched" not in kinds(events)
        assert engine.grid.letters() == ["XQZ", "XQZ", "DOG"]
        assert not engine.is_busy

    def test_rejection_needs_no_loop(self):
        """Unknown words are rejected synchronously."""
        engine, _ = make_engine("XQZ", "XQZ", "DOG")
        assert not trace(engine, (0, 0), (0, 1), (0, 2)).matched
