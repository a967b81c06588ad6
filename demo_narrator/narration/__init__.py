"""Narration: providers, pre-synthesis, script placement, mixing, subtitles.

WHY: Narration is produced independently of the recording and has to be
reconciled with it twice: once before capture (durations for pacing)
and once after (placing clips against the recorded actions).

HOW: providers/ wraps TTS backends behind one contract; presynth.py
measures clips ahead of capture; script.py and mixer.py place and mix
clips after capture; subtitles.py renders the placed text.

RULES:
- Narration text is always supplied by the demo file, never generated
- Pre-synthesis degrades to estimates; mixing failures are fatal
"""
