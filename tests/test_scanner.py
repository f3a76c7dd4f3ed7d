import pytest
from conftest import make_store

from scankey.engine import DEFAULT_WORDS
from scankey.keyboard import FIRST_KEY_ROW, KEY_ROWS, PREDICTION_ROW, TEXT_ROW
from scankey.scanner import Mode

LAST_ROW = FIRST_KEY_ROW + len(KEY_ROWS) - 1
LETTERS_A_F = FIRST_KEY_ROW + 1


def tap(controller, scheduler, ms=500):
    controller.on_primary_down()
    scheduler.advance(ms)
    controller.on_primary_up()


def press_select(controller, scheduler, ms=200):
    controller.on_secondary_down()
    scheduler.advance(ms)
    controller.on_secondary_up()


def go_to_row(controller, scheduler, row):
    while controller.state.row_index != row:
        tap(controller, scheduler)


# ── Start-up ──────────────────────────────────────────────────────────────────

def test_start_highlights_text_box_with_default_predictions(controller, view):
    assert controller.state.mode is Mode.ROW_SELECT
    assert controller.state.row_index == TEXT_ROW
    assert view.last_highlight == ("text_box",)
    assert view.predictions == list(DEFAULT_WORDS)
    assert view.text == ""


# ── Primary switch ────────────────────────────────────────────────────────────

def test_short_press_scans_forward_and_announces(controller, scheduler, view, spoken):
    tap(controller, scheduler, 1200)
    assert controller.state.row_index == PREDICTION_ROW
    assert view.last_highlight == ("row", PREDICTION_ROW)
    assert spoken[-1] == "predictive text"

    tap(controller, scheduler)
    assert controller.state.row_index == FIRST_KEY_ROW
    assert spoken[-1] == "controls"
    tap(controller, scheduler)
    assert spoken[-1] == "a b c d e f"


def test_bounce_is_ignored(controller, scheduler, spoken):
    tap(controller, scheduler, 200)
    assert controller.state.row_index == TEXT_ROW
    assert spoken == []


def test_forward_wraps_from_last_row_to_text_box(controller, scheduler):
    controller.state.row_index = LAST_ROW
    tap(controller, scheduler)
    assert controller.state.row_index == TEXT_ROW


def test_backward_wraps_from_text_box_to_last_row(controller):
    controller.scan(-1)
    assert controller.state.row_index == LAST_ROW


def test_hold_scans_backward_repeatedly_until_release(controller, scheduler):
    controller.on_primary_down()
    scheduler.advance(2999)
    assert controller.state.row_index == TEXT_ROW
    scheduler.advance(1)
    assert controller.primary.long_press_fired
    assert controller.state.row_index == TEXT_ROW
    scheduler.advance(2000)
    assert controller.state.row_index == LAST_ROW
    scheduler.advance(2000)
    assert controller.state.row_index == LAST_ROW - 1

    controller.on_primary_up()

    assert controller.state.row_index == LAST_ROW - 1
    assert scheduler.pending == 0
    scheduler.advance(10_000)
    assert controller.state.row_index == LAST_ROW - 1


def test_press_just_under_long_press_still_steps_forward(controller, scheduler):
    tap(controller, scheduler, 2999)
    assert controller.state.row_index == PREDICTION_ROW


def test_fast_profile_uses_shorter_timings(controller, scheduler):
    controller.set_speed("fast")
    controller.on_primary_down()
    scheduler.advance(2000 + 1000)
    controller.on_primary_up()
    assert controller.state.row_index == LAST_ROW


def test_unknown_speed_is_rejected(controller):
    with pytest.raises(ValueError):
        controller.set_speed("ludicrous")


def test_auto_repeat_down_events_schedule_one_timer(controller, scheduler):
    controller.on_primary_down()
    controller.on_primary_down()
    controller.on_primary_down()
    assert scheduler.pending == 1


def test_timer_from_an_earlier_press_is_inert(controller, scheduler):
    tap(controller, scheduler, 300)
    stale_cycle = controller.primary.cycle
    controller.on_primary_down()

    controller._on_primary_held(stale_cycle)
    controller._on_backward_tick(stale_cycle)

    assert not controller.primary.long_press_fired
    assert controller.state.row_index == PREDICTION_ROW


def test_release_without_press_is_ignored(controller):
    controller.on_primary_up()
    controller.on_secondary_up()
    assert controller.state.row_index == TEXT_ROW


# ── Secondary switch ──────────────────────────────────────────────────────────

def test_select_enters_prediction_row(controller, scheduler, view, spoken):
    tap(controller, scheduler)
    press_select(controller, scheduler)
    assert controller.state.mode is Mode.ITEM_SELECT
    assert controller.state.item_index == 0
    assert view.last_highlight == ("item", PREDICTION_ROW, 0)
    assert spoken[-1] == "YES"


def test_select_bounce_is_ignored(controller, scheduler):
    tap(controller, scheduler)
    press_select(controller, scheduler, 50)
    assert controller.state.mode is Mode.ROW_SELECT


def test_long_select_jumps_to_prediction_row(controller, scheduler, spoken):
    go_to_row(controller, scheduler, LETTERS_A_F)
    spoken.clear()

    controller.on_secondary_down()
    scheduler.advance(3000)
    assert controller.state.row_index == PREDICTION_ROW
    controller.on_secondary_up()

    assert controller.state.mode is Mode.ROW_SELECT
    assert spoken == []


def test_long_select_backs_out_of_a_row(controller, scheduler, spoken):
    go_to_row(controller, scheduler, LETTERS_A_F)
    press_select(controller, scheduler)
    tap(controller, scheduler)
    assert controller.state.mode is Mode.ITEM_SELECT

    controller.on_secondary_down()
    scheduler.advance(3500)
    controller.on_secondary_up()

    assert controller.state.mode is Mode.ROW_SELECT
    assert controller.state.row_index == LETTERS_A_F
    assert spoken[-1] == "a b c d e f"
    assert controller.buffer.text == ""


def test_item_scan_wraps_within_row(controller, scheduler, spoken):
    go_to_row(controller, scheduler, LETTERS_A_F)
    press_select(controller, scheduler)
    assert spoken[-1] == "A"
    for _ in range(5):
        tap(controller, scheduler)
    assert spoken[-1] == "F"
    tap(controller, scheduler)
    assert controller.state.item_index == 0
    controller.scan(-1)
    assert controller.state.item_index == 5


def test_typing_a_letter_returns_to_row_select(controller, scheduler, view):
    go_to_row(controller, scheduler, LETTERS_A_F)
    press_select(controller, scheduler)
    tap(controller, scheduler)
    press_select(controller, scheduler)

    assert controller.buffer.text == "B"
    assert view.text == "B"
    assert controller.state.mode is Mode.ROW_SELECT
    assert controller.state.row_index == LETTERS_A_F
    assert view.last_highlight == ("row", LETTERS_A_F)


def test_letter_refreshes_predictions(controller, engine, scheduler, view):
    engine.use_baseline(make_store({"BED": 10, "BATHROOM": 4}))
    go_to_row(controller, scheduler, LETTERS_A_F)
    press_select(controller, scheduler)
    tap(controller, scheduler)
    press_select(controller, scheduler)
    assert view.predictions[:2] == ["BED", "BATHROOM"]


def test_text_box_row_cannot_be_entered(controller, scheduler):
    controller.scan(+1)
    controller.scan(-1)
    controller.select()
    assert controller.state.mode is Mode.ROW_SELECT


# ── Predictions ───────────────────────────────────────────────────────────────

def test_choosing_a_prediction_commits_and_learns(controller, engine, scheduler, view):
    engine.use_baseline(make_store({"HAPPY": 5, "HAT": 1}))
    controller.buffer.set("I AM HA")
    assert controller.candidates[0] == "HAPPY"

    tap(controller, scheduler)
    press_select(controller, scheduler)
    press_select(controller, scheduler)

    assert controller.buffer.text == "I AM HAPPY "
    assert engine.user.unigrams["HAPPY"].count == 1
    assert engine.user.bigrams["AM HAPPY"].count == 1
    assert engine.user.trigrams["I AM HAPPY"].count == 1
    assert controller.state.mode is Mode.ROW_SELECT
    assert controller.state.row_index == PREDICTION_ROW
    assert view.last_highlight == ("row", PREDICTION_ROW)


def test_choosing_first_word_records_no_ngram(controller, engine, scheduler):
    tap(controller, scheduler)
    press_select(controller, scheduler)
    press_select(controller, scheduler)
    assert controller.buffer.text == "YES "
    assert engine.user.unigrams["YES"].count == 1
    assert engine.user.bigrams == {}


def test_blank_chip_selects_nothing(controller, scheduler):
    controller.buffer.set("ZQ")
    assert controller.candidates == [""] * 6
    tap(controller, scheduler)
    press_select(controller, scheduler)
    press_select(controller, scheduler)
    assert controller.buffer.text == "ZQ"
    assert controller.state.mode is Mode.ROW_SELECT


def test_empty_prediction_row_is_safe(controller, scheduler, spoken):
    controller.candidates = []
    controller.state.row_index = PREDICTION_ROW
    controller.select()
    assert controller.state.mode is Mode.ITEM_SELECT
    spoken.clear()

    controller.scan(+1)
    controller.scan(-1)
    controller.select()

    assert spoken == []
    assert controller.state.mode is Mode.ROW_SELECT
    assert controller.buffer.text == ""


def test_prediction_row_highlight_survives_refresh(controller, view):
    controller.scan(+1)
    controller.buffer.set("HELLO")
    assert view.last_highlight == ("row", PREDICTION_ROW)


# ── Control row ───────────────────────────────────────────────────────────────

def choose_control(controller, scheduler, index):
    go_to_row(controller, scheduler, FIRST_KEY_ROW)
    press_select(controller, scheduler)
    for _ in range(index):
        tap(controller, scheduler)
    press_select(controller, scheduler)


def test_space_control_learns_the_typed_word(controller, engine, scheduler):
    controller.buffer.set("GOOD MORNING")
    choose_control(controller, scheduler, 0)
    assert controller.buffer.text == "GOOD MORNING "
    assert engine.user.unigrams["MORNING"].count == 1
    assert engine.user.bigrams["GOOD MORNING"].count == 1


def test_auto_learn_can_be_switched_off(config, controller, engine, scheduler):
    config["auto_learn"] = False
    controller.buffer.set("HELLO")
    choose_control(controller, scheduler, 0)
    assert controller.buffer.text == "HELLO "
    assert engine.user.is_empty()


@pytest.mark.parametrize(
    "index, before, after",
    [
        (1, "HELLO", "HELL"),
        (2, "HELLO THERE", "HELLO "),
        (3, "HELLO THERE", ""),
    ],
)
def test_editing_controls(controller, scheduler, index, before, after):
    controller.buffer.set(before)
    choose_control(controller, scheduler, index)
    assert controller.buffer.text == after
    assert controller.state.mode is Mode.ROW_SELECT
    assert controller.state.row_index == FIRST_KEY_ROW


def test_control_labels_are_spoken_in_full(controller, scheduler, spoken):
    go_to_row(controller, scheduler, FIRST_KEY_ROW)
    press_select(controller, scheduler)
    tap(controller, scheduler)
    assert spoken[-1] == "delete letter"


def test_exit_control_calls_exit_hook(controller, scheduler, exits):
    choose_control(controller, scheduler, 5)
    assert exits == [True]


def test_settings_control_without_settings_list_is_noop(controller, scheduler):
    choose_control(controller, scheduler, 4)
    assert controller.state.mode is Mode.ROW_SELECT


# ── Text box ──────────────────────────────────────────────────────────────────

def test_speaking_buffer_three_times_reinforces_phrase(controller, engine, spoken):
    controller.buffer.set("I NEED WATER ")
    for _ in range(3):
        controller.select()

    assert spoken == ["I NEED WATER"] * 3
    assert engine.user.unigrams["WATER"].count == 1
    assert engine.user.trigrams["I NEED WATER"].count == 1
    assert controller.speak_count == 0


def test_editing_resets_reinforcement_count(controller, engine):
    controller.buffer.set("HELLO")
    controller.select()
    controller.select()
    controller.buffer.set("HELLO ")
    controller.select()
    assert engine.user.is_empty()
    assert controller.speak_count == 1


def test_speaking_empty_buffer_does_nothing(controller, spoken):
    controller.buffer.set("   ")
    controller.select()
    assert spoken == []
    assert controller.speak_count == 0
