"""Unit tests for WorkflowController."""

import threading
from pathlib import Path

import pytest
from pubsub import pub

from polyscribe.errors import (ConfigurationError, NoFileSelected, TranscriptEmpty, RecognitionFailed,
                               RecognizerUnavailable)
from polyscribe.models.language import Language
from polyscribe.models.transcription import AuthorizationStatus
from polyscribe.models.workflow import Alert, SessionState, TRANSCRIBING_PLACEHOLDER
from polyscribe.services.workflow_controller import WorkflowController
from polyscribe.storage.file_manager import FileManager
from polyscribe.transcription.publisher import FINAL_TOPIC


def transcribe_and_wait(controller, timeout=5.0):
    task = controller.transcribe()
    assert task is not None
    assert controller.wait_until_idle(timeout)
    return task


@pytest.mark.unit
class TestFileSelection:
    """Selecting the input audio file."""

    def test_select_file_adopts_first_candidate(self, controller, sample_audio_file, temp_data_dir):
        other = Path(temp_data_dir) / "other.wav"
        other.write_bytes(b"RIFF")

        path = controller.select_file([sample_audio_file, str(other)])

        assert path == Path(sample_audio_file).resolve()
        assert controller.state.input_file == path
        assert controller.state.can_transcribe

    def test_cancelled_picker_is_a_noop(self, controller, sample_audio_file):
        controller.select_file([sample_audio_file])

        assert controller.select_file([]) is None
        assert controller.state.input_file == Path(sample_audio_file).resolve()

    def test_failed_selection_keeps_prior_file(self, controller, sample_audio_file, temp_data_dir):
        controller.select_file([sample_audio_file])

        result = controller.select_file([str(Path(temp_data_dir) / "missing.wav")])

        assert result is None
        assert controller.state.input_file == Path(sample_audio_file).resolve()
        assert controller.state.last_error.startswith("FileSelectionFailed")

    def test_load_sample_selects_bundled_audio(self, recognizer, translator, dispatcher,
                                               sample_audio_file, temp_data_dir):
        file_manager = FileManager(export_dir=temp_data_dir, sample_audio_path=sample_audio_file)
        controller = WorkflowController(recognizer, translator, file_manager, dispatcher=dispatcher)

        assert controller.load_sample() == Path(sample_audio_file).resolve()
        assert controller.state.input_file is not None

    def test_load_sample_without_asset_leaves_selection_empty(self, controller):
        assert controller.load_sample() is None
        assert controller.state.input_file is None


@pytest.mark.unit
class TestTranscription:
    """Transcription stage behaviour."""

    def test_french_scenario_progresses_then_freezes(self, controller, sample_audio_file, state_recorder):
        controller.select_file([sample_audio_file])

        transcribe_and_wait(controller)

        live = [state.live_transcript for state in state_recorder.states("live_transcript")]
        assert live == ["Bonj", "Bonjour", "Bonjour le monde"]
        assert controller.state.transcript == "Bonjour le monde"
        assert controller.state.is_transcribing is False

    def test_recognizer_receives_source_locale(self, controller, recognizer, sample_audio_file):
        controller.select_file([sample_audio_file])
        controller.set_source_language(Language.ENGLISH)

        transcribe_and_wait(controller)

        assert recognizer.recognize_calls == [(Path(sample_audio_file).resolve(), "en-US")]

    def test_live_transcript_never_shrinks_before_final(self, controller, recognizer, sample_audio_file,
                                                        state_recorder):
        recognizer.script = [
            ("The", False),
            ("The quick", False),
            ("The quik", False),
            ("The quick brown", False),
            ("The qu", False),
            ("The quick brown fox", False),
            ("The quick brown fox", False),
            ("The quick brown fox jumps", True),
        ]
        controller.select_file([sample_audio_file])

        transcribe_and_wait(controller)

        live = [state.live_transcript for state in state_recorder.states("live_transcript")]
        assert live == ["The", "The quick", "The quick brown", "The quick brown fox", "The quick brown fox jumps"]
        lengths = [len(text) for text in live]
        assert lengths == sorted(lengths)

    def test_shorter_final_freezes_longest_hypothesis(self, controller, recognizer, sample_audio_file):
        recognizer.script = [("Bonjour le monde", False), ("Bonjour", True)]
        controller.select_file([sample_audio_file])

        transcribe_and_wait(controller)

        assert controller.state.transcript == "Bonjour le monde"
        assert controller.state.live_transcript == "Bonjour le monde"

    def test_empty_final_leaves_empty_transcript(self, controller, recognizer, sample_audio_file):
        recognizer.script = [("", True)]
        controller.select_file([sample_audio_file])

        transcribe_and_wait(controller)

        assert controller.state.transcript == ""
        assert controller.state.live_transcript == ""
        assert not controller.state.can_translate

    def test_placeholder_shown_while_transcribing(self, controller, recognizer, sample_audio_file):
        recognizer.gate = threading.Event()
        controller.select_file([sample_audio_file])

        controller.transcribe()

        assert controller.state.is_transcribing is True
        assert controller.state.live_transcript == TRANSCRIBING_PLACEHOLDER
        assert not controller.state.can_transcribe
        assert controller.transcribe() is None

        recognizer.gate.set()
        assert controller.wait_until_idle(5.0)
        assert controller.state.transcript == "Bonjour le monde"

    def test_no_file_raises_and_alerts(self, controller, recognizer):
        with pytest.raises(NoFileSelected):
            controller.transcribe()

        assert controller.state.alert is Alert.NO_FILE_SELECTED
        assert controller.state.is_transcribing is False
        assert recognizer.recognize_calls == []

    @pytest.mark.parametrize("status", [AuthorizationStatus.DENIED,
                                        AuthorizationStatus.RESTRICTED,
                                        AuthorizationStatus.NOT_DETERMINED])
    def test_permission_denied_does_nothing(self, controller, recognizer, sample_audio_file, status):
        recognizer.authorization = status
        controller.select_file([sample_audio_file])

        assert controller.transcribe() is None

        assert controller.state.is_transcribing is False
        assert controller.state.live_transcript == ""
        assert controller.state.last_error.startswith("PermissionDenied")
        assert controller.state.alert is None
        assert recognizer.recognize_calls == []

    def test_unsupported_locale(self, controller, recognizer, sample_audio_file):
        recognizer.supported_locales = {"en-US"}
        controller.select_file([sample_audio_file])

        assert controller.transcribe() is None

        assert controller.state.is_transcribing is False
        assert controller.state.last_error.startswith("UnsupportedLocale")

    def test_recognizer_unavailable(self, controller, recognizer, sample_audio_file):
        recognizer.available = False
        controller.select_file([sample_audio_file])

        assert controller.transcribe() is None

        assert controller.state.is_transcribing is False
        assert controller.state.last_error.startswith("RecognizerUnavailable")

    @pytest.mark.parametrize("failure", [RecognitionFailed("audio stream broke"),
                                         RecognizerUnavailable("service went offline"),
                                         RuntimeError("unexpected")])
    def test_failure_mid_stream_clears_busy_flag(self, controller, recognizer, sample_audio_file, failure):
        recognizer.script = [("Bonj", False), failure]
        controller.select_file([sample_audio_file])

        transcribe_and_wait(controller)

        assert controller.state.is_transcribing is False
        assert controller.state.transcript == ""
        assert controller.state.live_transcript == "Bonj"
        assert controller.state.last_error is not None
        assert controller.state.can_transcribe

    def test_stream_without_final_is_a_failure(self, controller, recognizer, sample_audio_file):
        recognizer.script = [("Bonj", False)]
        controller.select_file([sample_audio_file])

        transcribe_and_wait(controller)

        assert controller.state.transcript == ""
        assert controller.state.last_error.startswith("RecognitionFailed")

    def test_cancel_discards_late_results(self, controller, recognizer, sample_audio_file):
        recognizer.gate = threading.Event()
        controller.select_file([sample_audio_file])
        task = controller.transcribe()

        controller.cancel_transcription()
        recognizer.gate.set()
        assert task.join(5.0)
        controller.dispatcher.process_pending()

        assert controller.state.is_transcribing is False
        assert controller.state.live_transcript == ""
        assert controller.state.transcript == ""

    def test_replacing_file_abandons_running_transcription(self, controller, recognizer, sample_audio_file,
                                                           temp_data_dir):
        other = Path(temp_data_dir) / "other.flac"
        other.write_bytes(b"fLaC")
        recognizer.gate = threading.Event()
        controller.select_file([sample_audio_file])
        task = controller.transcribe()

        controller.select_file([str(other)])
        recognizer.gate.set()
        assert task.join(5.0)
        controller.dispatcher.process_pending()

        assert task.cancelled
        assert controller.state.input_file == other.resolve()
        assert controller.state.transcript == ""
        assert controller.state.is_transcribing is False

    def test_final_result_is_published(self, controller, sample_audio_file):
        received = []

        def on_final(result):
            received.append(result.text)

        pub.subscribe(on_final, FINAL_TOPIC)
        try:
            controller.select_file([sample_audio_file])
            transcribe_and_wait(controller)
        finally:
            pub.unsubscribe(on_final, FINAL_TOPIC)

        assert received == ["Bonjour le monde"]


@pytest.mark.unit
class TestTranslation:
    """Translation stage behaviour."""

    def test_translate_requires_transcript(self, controller):
        assert not controller.state.can_translate
        with pytest.raises(TranscriptEmpty):
            controller.translate()
        assert controller.state.session_state is SessionState.ABSENT

    def test_translate_scenario_then_export(self, controller, translator, sample_audio_file, temp_data_dir):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)

        task = controller.translate()
        assert task is not None
        assert controller.state.translation == "Translating from French to English..."
        assert controller.wait_until_idle(5.0)

        assert controller.state.translation == "Hello world"
        assert controller.state.is_translating is False
        assert controller.state.session_state is SessionState.ACTIVE
        assert translator.calls == [("Bonjour le monde", Language.ENGLISH, Language.FRENCH)]

        path = controller.export(directory=temp_data_dir)
        with open(path, encoding="utf-8") as f:
            assert f.read() == "Bonjour le monde\n\n--- TRANSLATION ---\nHello world"
        assert path.name == "transcript_French_to_English.txt"
        assert controller.state.alert is Alert.EXPORT_SUCCEEDED

    def test_translate_sends_edited_transcript(self, controller, translator, sample_audio_file):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)
        controller.edit_transcript("Bonjour tout le monde")

        controller.translate()
        assert controller.wait_until_idle(5.0)

        assert translator.calls[0][0] == "Bonjour tout le monde"

    def test_translate_while_retranscribing_sends_final_transcript(self, controller, recognizer, translator,
                                                                    dispatcher, sample_audio_file):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)
        recognizer.gate = threading.Event()
        controller.transcribe()
        assert controller.state.live_transcript == TRANSCRIBING_PLACEHOLDER

        controller.translate()
        assert dispatcher.wait_until(lambda: not controller.state.is_translating, timeout=5.0)

        assert translator.calls[0][0] == "Bonjour le monde"
        recognizer.gate.set()
        assert controller.wait_until_idle(5.0)

    def test_start_session_twice_keeps_current_session(self, controller):
        generation = controller.start_translation_session()

        assert controller.start_translation_session() == generation
        assert controller.state.session_state is SessionState.PENDING

    def test_translate_without_translator(self, recognizer, file_manager, dispatcher, sample_audio_file):
        controller = WorkflowController(recognizer, None, file_manager, dispatcher=dispatcher)
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)

        with pytest.raises(ConfigurationError):
            controller.translate()

        assert controller.state.is_translating is False
        assert controller.state.session_state is SessionState.ABSENT
        assert controller.export() is not None

    def test_auto_detect_omits_source(self, recognizer, translator, file_manager, dispatcher, sample_audio_file):
        controller = WorkflowController(recognizer, translator, file_manager, dispatcher=dispatcher,
                                        auto_detect_source=True)
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)

        controller.translate()
        assert controller.wait_until_idle(5.0)

        assert translator.calls == [("Bonjour le monde", Language.ENGLISH, None)]

    def test_failure_clears_busy_flag_and_alerts(self, controller, translator, sample_audio_file,
                                                 translation_failure):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)
        controller.edit_translation("previous")
        translator.reply = translation_failure

        controller.translate()
        assert controller.wait_until_idle(5.0)

        assert controller.state.is_translating is False
        assert controller.state.translation == "previous"
        assert controller.state.alert is Alert.TRANSLATION_FAILED
        assert controller.state.can_translate

        translator.reply = "Hello world"
        controller.translate()
        assert controller.wait_until_idle(5.0)
        assert controller.state.translation == "Hello world"

    def test_toggle_twice_returns_to_absent(self, controller):
        assert controller.toggle_translation_session() is SessionState.PENDING
        assert controller.toggle_translation_session() is SessionState.ABSENT

    def test_target_change_ends_session(self, controller, translator, sample_audio_file):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)
        controller.translate()
        assert controller.wait_until_idle(5.0)

        controller.set_target_language("Japanese")
        assert controller.state.session_state is SessionState.ABSENT

        controller.translate()
        assert controller.wait_until_idle(5.0)
        assert translator.calls[-1][1] is Language.JAPANESE

    def test_ending_session_abandons_in_flight_translation(self, controller, sample_audio_file):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)
        controller.edit_translation("earlier")

        task = controller.translate()
        controller.end_translation_session()
        assert task.join(5.0)
        controller.dispatcher.process_pending()

        assert controller.state.is_translating is False
        assert controller.state.translation == "earlier"
        assert controller.state.session_state is SessionState.ABSENT


@pytest.mark.unit
class TestExport:
    """Export stage behaviour."""

    def test_export_requires_transcript(self, controller):
        assert not controller.state.can_export
        with pytest.raises(TranscriptEmpty):
            controller.export()

    def test_export_without_translation(self, controller, sample_audio_file, file_manager):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)

        path = controller.export()

        assert path.parent == file_manager.export_dir
        with open(path, encoding="utf-8") as f:
            assert f.read() == "Bonjour le monde\n\n--- TRANSLATION ---\n"

    def test_failed_export_alerts(self, controller, sample_audio_file, temp_data_dir):
        controller.select_file([sample_audio_file])
        transcribe_and_wait(controller)
        assert controller.export(directory=temp_data_dir) is not None

        assert controller.export(directory=temp_data_dir) is None

        assert controller.state.alert is Alert.EXPORT_FAILED
        assert controller.state.last_error.startswith("ExportFailed")

    def test_dismiss_alert(self, controller):
        with pytest.raises(NoFileSelected):
            controller.transcribe()

        controller.dismiss_alert()

        assert controller.state.alert is None


@pytest.mark.unit
def test_shutdown_cleans_up_recognizer(controller, recognizer):
    controller.shutdown()

    assert recognizer.cleaned_up
    assert controller.state.session_state is SessionState.ABSENT


@pytest.mark.unit
def test_explicit_session_start_binds_source_language(controller, translator, sample_audio_file):
    controller.select_file([sample_audio_file])
    transcribe_and_wait(controller)

    generation = controller.start_translation_session()
    assert controller.state.session_state is SessionState.PENDING

    controller.translate()
    assert controller.wait_until_idle(5.0)

    assert controller.session.generation == generation
    assert controller.state.session_state is SessionState.ACTIVE
    assert translator.calls == [("Bonjour le monde", Language.ENGLISH, Language.FRENCH)]
