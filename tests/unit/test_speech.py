"""
Unit tests for SpeechCoordinator.
"""

import unittest

from shannon_learn.exceptions import SpeechError
from shannon_learn.utils.speech import SpeechAction, SpeechCoordinator
from tests.unit.fakes import FakeSpeechEngine


class TestSpeechToggle(unittest.TestCase):
    """Test play/pause semantics per identifier."""

    def setUp(self):
        self.engine = FakeSpeechEngine()
        self.speech = SpeechCoordinator(self.engine, language="en-GB")

    def test_start_speaking(self):
        action = self.speech.speak("Hello there.", "page-0")
        self.assertEqual(action, SpeechAction.STARTED)
        self.assertEqual(self.speech.active_identifier, "page-0")
        self.assertEqual(self.engine.spoken, [("Hello there.", "en-GB")])

    def test_same_identifier_stops(self):
        self.speech.speak("Hello there.", "page-0")
        action = self.speech.speak("Hello there.", "page-0")
        self.assertEqual(action, SpeechAction.STOPPED)
        self.assertFalse(self.speech.is_speaking)
        self.assertEqual(len(self.engine.spoken), 1)

    def test_other_identifier_replaces(self):
        self.speech.speak("First.", "page-0")
        self.speech.speak("Second.", "page-1")
        self.assertEqual(self.speech.active_identifier, "page-1")
        self.assertEqual(self.engine.cancel_count, 1)

    def test_language_override(self):
        self.speech.speak("Hola.", "page-0", language="es-ES")
        self.assertEqual(self.engine.spoken[-1], ("Hola.", "es-ES"))

    def test_blank_text_ignored(self):
        self.assertEqual(self.speech.speak("   ", "page-0"), SpeechAction.IGNORED)
        self.assertEqual(self.engine.spoken, [])

    def test_toggle_alias(self):
        self.speech.toggle("Hello.", "results")
        self.assertEqual(self.speech.toggle("Hello.", "results"), SpeechAction.STOPPED)


class TestSpeechLifecycle(unittest.TestCase):
    """Engine callbacks and stale tokens."""

    def setUp(self):
        self.engine = FakeSpeechEngine()
        self.errors = []
        self.speech = SpeechCoordinator(self.engine, on_error=self.errors.append)

    def test_natural_end_returns_to_idle(self):
        self.speech.speak("Hello.", "page-0")
        self.engine.finish()
        self.assertFalse(self.speech.is_speaking)

    def test_stale_end_does_not_clear_new_utterance(self):
        self.speech.speak("First.", "page-0")
        self.speech.speak("Second.", "page-1")
        self.engine.finish(index=0)
        self.assertEqual(self.speech.active_identifier, "page-1")

    def test_stale_error_is_ignored(self):
        self.speech.speak("First.", "page-0")
        self.speech.speak("Second.", "page-1")
        self.engine.error(RuntimeError("interrupted"), index=0)
        self.assertEqual(self.speech.active_identifier, "page-1")
        self.assertEqual(self.errors, [])

    def test_engine_error_mid_utterance(self):
        self.speech.speak("Hello.", "page-0")
        self.engine.error(RuntimeError("audio device lost"))
        self.assertFalse(self.speech.is_speaking)
        self.assertEqual(len(self.errors), 1)
        self.assertIsInstance(self.errors[0], SpeechError)
        self.assertIn("audio device lost", str(self.speech.last_error))

    def test_stop_when_idle(self):
        self.assertFalse(self.speech.stop())

    def test_stop_when_speaking(self):
        self.speech.speak("Hello.", "page-0")
        self.assertTrue(self.speech.stop())
        self.assertFalse(self.speech.is_speaking)

    def test_finish_after_stop_is_harmless(self):
        self.speech.speak("Hello.", "page-0")
        self.speech.stop()
        self.engine.finish()
        self.speech.speak("Again.", "page-0")
        self.assertEqual(self.speech.active_identifier, "page-0")


class TestSpeechFailures(unittest.TestCase):
    """Missing or broken engines."""

    def test_no_engine(self):
        errors = []
        speech = SpeechCoordinator(None, on_error=errors.append)
        self.assertEqual(speech.speak("Hello.", "page-0"), SpeechAction.FAILED)
        self.assertFalse(speech.is_speaking)
        self.assertEqual(len(errors), 1)
        self.assertFalse(speech.stop())

    def test_engine_raises_on_speak(self):
        speech = SpeechCoordinator(FakeSpeechEngine(fail_on_speak=RuntimeError("no voices")))
        self.assertEqual(speech.speak("Hello.", "page-0"), SpeechAction.FAILED)
        self.assertFalse(speech.is_speaking)
        self.assertIn("no voices", str(speech.last_error))

    def test_synchronous_error_callback_reports_failure(self):
        class ImmediateFailEngine(FakeSpeechEngine):
            def speak(self, text, language, *, on_start, on_end, on_error):
                on_error(RuntimeError("unsupported language"))

        speech = SpeechCoordinator(ImmediateFailEngine())
        self.assertEqual(speech.speak("Hello.", "page-0"), SpeechAction.FAILED)
        self.assertFalse(speech.is_speaking)

    def test_failure_is_not_retried(self):
        engine = FakeSpeechEngine(fail_on_speak=RuntimeError("busy"))
        speech = SpeechCoordinator(engine)
        speech.speak("Hello.", "page-0")
        engine.fail_on_speak = None
        self.assertEqual(engine.spoken, [])

    def test_next_speak_after_failure_works(self):
        engine = FakeSpeechEngine(fail_on_speak=RuntimeError("busy"))
        speech = SpeechCoordinator(engine)
        speech.speak("Hello.", "page-0")
        engine.fail_on_speak = None
        self.assertEqual(speech.speak("Hello.", "page-0"), SpeechAction.STARTED)
        self.assertIsNone(speech.last_error)


if __name__ == "__main__":
    unittest.main()
