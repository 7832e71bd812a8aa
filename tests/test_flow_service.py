import pytest

from soporte_bot.schemas.conversation import DETAIL_FIELDS, ConversationRecord
from soporte_bot.services.flow_service import (
    EVENT_REGISTER,
    EVENT_SAMPLES,
    MSG_CLOSING,
    MSG_ESCALATION_QUESTION,
    MSG_GREETING,
    MSG_HANDOFF,
    MSG_INVALID_OPTION,
    MSG_INVALID_YES_NO,
    MSG_MENU,
    UnknownFlowEventError,
    build_summary,
    dispatch,
    match_keyword_flow,
    escalation_capture,
    process_message,
)
from soporte_bot.services.state_machine import FlowStep, InvalidTransitionError
from soporte_bot.services.support_options import SUPPORT_OPTIONS

NUMBER = "573001234567"

EXPECTED_MENU = (
    "🛠 *Soporte Técnico*\n"
    "Selecciona el tipo de problema:\n"
    "\n"
    "1️⃣ No abre el sistema\n"
    "2️⃣ Licencia desactivada\n"
    "3️⃣ Error en portal web\n"
    "4️⃣ Solicitar cotización\n"
    "5️⃣ Otro problema\n"
    "\n"
    "Escribe solo el número de la opción."
)


def converse(store, *texts):
    """Feed texts through the flow the way the bot does and return every reply."""
    replies = []
    for text in texts:
        reply = process_message(text, store.get(NUMBER))
        if reply.clear:
            store.clear(NUMBER)
        elif reply.changes:
            store.update(NUMBER, **reply.changes)
        replies.append(reply)
    return replies


def assert_single_detail(record: ConversationRecord):
    populated = record.populated_details()
    assert len(populated) <= 1
    if populated:
        (field,) = populated
        assert record.option is not None
        assert SUPPORT_OPTIONS[record.option].field == field


class TestKeywordRouting:
    @pytest.mark.parametrize("keyword", ["soporte", "support", "ayuda", "error"])
    def test_support_keyword_from_idle_shows_menu(self, store, keyword):
        (reply,) = converse(store, keyword)

        assert reply.texts() == [EXPECTED_MENU]
        assert store.get(NUMBER).step == FlowStep.AWAITING_CATEGORY

    def test_keywords_are_case_and_space_insensitive(self):
        assert match_keyword_flow("  SOPORTE ") is not None
        assert match_keyword_flow("Buenas   Tardes") is not None

    def test_keyword_must_match_whole_message(self):
        assert match_keyword_flow("tengo un error en el sistema") is None

    def test_unknown_text_from_idle_is_ignored(self, store):
        (reply,) = converse(store, "quiero comprar pan")

        assert reply.messages == []
        assert store.get(NUMBER).is_blank()

    def test_digit_from_idle_is_ignored(self, store):
        (reply,) = converse(store, "3")

        assert reply.messages == []
        assert store.get(NUMBER).option is None

    def test_menu_text_is_verbatim(self):
        assert MSG_MENU == EXPECTED_MENU


class TestGreeting:
    def test_first_greeting_redirects_to_menu(self, store):
        (reply,) = converse(store, "hola")

        assert reply.texts() == [MSG_GREETING, EXPECTED_MENU]
        record = store.get(NUMBER)
        assert record.in_flow is True
        assert record.step == FlowStep.AWAITING_CATEGORY

    def test_second_greeting_does_not_redirect(self, store):
        first, second = converse(store, "hola", "buenas")

        assert EXPECTED_MENU in first.texts()
        assert second.texts() == [MSG_GREETING]
        assert store.get(NUMBER).step == FlowStep.AWAITING_CATEGORY

    def test_greeting_redirects_again_after_ticket_closed(self, store):
        replies = converse(store, "hola", "2", "ABC-123", "no", "hola")

        assert replies[-1].texts() == [MSG_GREETING, EXPECTED_MENU]


class TestCategorySelection:
    def test_portal_option(self, store):
        _, reply = converse(store, "soporte", "3")

        assert reply.texts() == [SUPPORT_OPTIONS["3"].prompt]
        record = store.get(NUMBER)
        assert record.option == "3"
        assert record.step == FlowStep.AWAITING_DETAIL

    def test_option_is_trimmed(self, store):
        converse(store, "soporte", "  5 \n")

        assert store.get(NUMBER).option == "5"

    @pytest.mark.parametrize("text", ["0", "6", "uno", "1️⃣", "12", ""])
    def test_invalid_option_reprompts_without_mutation(self, store, text):
        converse(store, "soporte")
        before = store.get(NUMBER)

        (reply,) = converse(store, text)

        assert reply.texts() == [MSG_INVALID_OPTION, EXPECTED_MENU]
        after = store.get(NUMBER)
        assert after.option is None
        assert after.step == FlowStep.AWAITING_CATEGORY
        assert after.updated_at == before.updated_at

    def test_invalid_then_valid_option(self, store):
        converse(store, "soporte", "7", "1")

        assert store.get(NUMBER).option == "1"


class TestDetailCapture:
    def test_quote_summary(self, store):
        _, _, reply = converse(store, "soporte", "4", "10 licencias anuales")

        assert "💲 Cotización solicitada\nDetalle: 10 licencias anuales" in reply.texts()[0]
        assert reply.texts()[0].startswith("📋 *Resumen de tu reporte:*\n")
        assert reply.texts()[1] == MSG_ESCALATION_QUESTION
        record = store.get(NUMBER)
        assert record.quote_request == "10 licencias anuales"
        assert record.step == FlowStep.AWAITING_ESCALATION

    @pytest.mark.parametrize(
        "option, expected",
        [
            ("1", "❌ No abre el sistema\nMensaje: Error 500"),
            ("2", "🔑 Licencia desactivada\nDatos: Error 500"),
            ("3", "🌐 Error portal web\nMensaje: Error 500"),
            ("5", "📝 Otro problema\nDescripción: Error 500"),
        ],
    )
    def test_summary_per_option(self, store, option, expected):
        _, _, reply = converse(store, "soporte", option, "Error 500")

        assert reply.texts()[0].endswith(expected)

    def test_detail_is_stored_verbatim(self, store):
        converse(store, "soporte", "1", "  Sale 'acceso denegado'  ")

        assert store.get(NUMBER).error_message == "  Sale 'acceso denegado'  "

    def test_blank_detail_reprompts(self, store):
        _, _, reply = converse(store, "soporte", "2", "   ")

        assert reply.texts() == [SUPPORT_OPTIONS["2"].prompt]
        assert store.get(NUMBER).step == FlowStep.AWAITING_DETAIL

    def test_detail_without_category_is_ignored(self):
        record = ConversationRecord(step=FlowStep.AWAITING_DETAIL)

        reply = process_message("mi licencia es 123", record)

        assert reply.messages == []
        assert reply.changes == {}
        assert reply.clear is False

    def test_switching_category_drops_previous_detail(self, store):
        converse(store, "soporte", "1", "pantalla negra", "soporte", "2", "lic-77")

        record = store.get(NUMBER)
        assert record.error_message is None
        assert record.license_info == "lic-77"
        assert_single_detail(record)


class TestEscalation:
    @pytest.mark.parametrize("answer", ["si", "SI", " Si "])
    def test_yes_hands_off_and_clears(self, store, answer):
        *_, reply = converse(store, "soporte", "3", "no carga", answer)

        assert reply.texts() == [MSG_HANDOFF]
        assert reply.handoff_summary.endswith("🌐 Error portal web\nMensaje: no carga")
        assert store.get(NUMBER).is_blank()

    def test_no_closes_and_clears(self, store):
        *_, reply = converse(store, "soporte", "5", "otra cosa", "No")

        assert reply.texts() == [MSG_CLOSING]
        assert reply.handoff_summary is None
        assert store.get(NUMBER).is_blank()

    @pytest.mark.parametrize("answer", ["sí", "claro", "si por favor", "nop"])
    def test_other_answer_retries(self, store, answer):
        *_, reply = converse(store, "soporte", "2", "lic-1", answer)

        assert reply.texts() == [MSG_INVALID_YES_NO]
        record = store.get(NUMBER)
        assert record.option == "2"
        assert record.license_info == "lic-1"
        assert record.step == FlowStep.AWAITING_ESCALATION

    def test_retry_then_yes(self, store):
        *_, reply = converse(store, "soporte", "2", "lic-1", "quizas", "si")

        assert reply.texts() == [MSG_HANDOFF]
        assert store.get(NUMBER).is_blank()

    def test_missing_option_resets_silently(self):
        record = ConversationRecord(step=FlowStep.AWAITING_ESCALATION)

        reply = process_message("si", record)

        assert reply.messages == []
        assert reply.clear is True

    def test_answer_outside_escalation_step_is_rejected(self):
        record = ConversationRecord(option="1", step=FlowStep.AWAITING_CATEGORY)

        with pytest.raises(InvalidTransitionError):
            escalation_capture("si", record)

    def test_full_cycle_leaves_no_leakage(self, store):
        converse(store, "soporte", "4", "10 licencias anuales", "si")
        assert store.get(NUMBER).is_blank()

        _, reply = converse(store, "soporte", "1")

        record = store.get(NUMBER)
        assert reply.texts() == [SUPPORT_OPTIONS["1"].prompt]
        assert record.option == "1"
        assert record.quote_request is None
        assert record.populated_details() == {}


class TestInvariants:
    def test_single_detail_field_through_a_long_conversation(self, store):
        texts = ["hola", "9", "4", "cotizar", "ayuda", "5", "otra", "quizas", "soporte", "3", "x", "si"]
        for text in texts:
            converse(store, text)
            assert_single_detail(store.get(NUMBER))

    def test_detail_fields_cover_every_option(self):
        assert {option.field for option in SUPPORT_OPTIONS.values()} == set(DETAIL_FIELDS)


class TestBuildSummary:
    def test_without_option(self):
        assert build_summary(ConversationRecord()) is None

    def test_with_option(self):
        record = ConversationRecord(option="4", quote_request="ERP")
        assert build_summary(record) == "📋 *Resumen de tu reporte:*\n💲 Cotización solicitada\nDetalle: ERP"


class TestDispatch:
    def test_register_opens_menu_with_name(self):
        reply = dispatch(EVENT_REGISTER, ConversationRecord(), "Ana")

        assert reply.texts() == ["¡Hola Ana! 👋 Gracias por registrarte.", EXPECTED_MENU]
        assert reply.changes["name"] == "Ana"
        assert reply.changes["in_flow"] is True
        assert reply.changes["step"] == FlowStep.AWAITING_CATEGORY

    def test_samples_sends_media_in_order(self):
        urls = ["https://cdn.example.com/a.png", "https://cdn.example.com/b.pdf"]

        reply = dispatch(EVENT_SAMPLES, ConversationRecord(), "Ana", urls)

        assert [message.media_url for message in reply.messages] == [None, *urls]
        assert reply.changes == {}

    def test_unknown_event(self):
        with pytest.raises(UnknownFlowEventError) as exc:
            dispatch("NOPE", ConversationRecord(), "Ana")
        assert "NOPE" in str(exc.value)
