"""
scankey.speech
==============
Text-to-speech for scan announcements and for reading the buffer aloud.

Callers pass literal labels or buffer text; :func:`normalize_for_speech`
decides how each word should sound.  Synthesis runs on a worker thread so
a slow voice never stalls the scan timers, and only the latest pending
utterance is kept.
"""

from __future__ import annotations

import queue
import re
import threading

import pyttsx3

_SINGLE_LETTER = re.compile(r"^[A-Z]$")


def normalize_for_speech(text: str) -> str:
    """
    Lower-case words so they are read as words, but keep a lone capital
    letter as-is so it is spelled ("A" → "ay", not the article).
    """
    out: list[str] = []
    for word in text.split(" "):
        if _SINGLE_LETTER.match(word):
            out.append(word)
        elif word.upper() == "OK":
            out.append("okay")
        else:
            out.append(word.lower())
    return " ".join(out)


class Speaker:
    """
    Queue-backed pyttsx3 voice.  Call :meth:`start` once; :meth:`speak`
    is safe from any thread and silently does nothing if no voice could
    be initialised or speech is switched off.
    """

    def __init__(self, enabled: bool = True, rate: int | None = None) -> None:
        self.enabled = enabled
        self.rate = rate
        self._queue: queue.Queue[str | None] = queue.Queue(maxsize=8)
        self._thread: threading.Thread | None = None
        self._available = False

    def start(self) -> None:
        if self._thread is not None:
            return
        self._available = True
        self._thread = threading.Thread(target=self._worker, name="scankey-speech", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._drain()
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            pass
        self._thread = None

    def speak(self, text: str) -> None:
        if not text or not self.enabled or not self._available:
            return
        # Interrupt anything still waiting; only the newest label matters.
        self._drain()
        try:
            self._queue.put_nowait(normalize_for_speech(text.strip()))
        except queue.Full:
            pass

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def _worker(self) -> None:
        try:
            engine = pyttsx3.init()
            if self.rate:
                engine.setProperty("rate", self.rate)
        except (RuntimeError, OSError, ImportError) as e:
            print(f"[Speech] Warning: no voice available, continuing silently: {e}")
            self._available = False
            return

        while True:
            text = self._queue.get()
            if text is None:
                break
            try:
                engine.say(text)
                engine.runAndWait()
            except RuntimeError as e:
                print(f"[Speech] Error: {e}")
