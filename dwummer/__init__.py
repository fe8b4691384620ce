"""
dwummer - a deterministic, humanized drum groove generator.

dwummer writes drum parts the way a drummer plays them: a genre's
non-negotiable core (four on the floor, the backbeat) with probabilistic
variations on top, short figures that come back transformed, sections that
breathe, fills that grow with the tension of the arrangement, and timing
and dynamics that wander just enough to feel played. One seed reproduces
one groove exactly.

How a groove is built, one bar (repetition unit) at a time:

- **Euclidean rhythms.** ``generate_euclidean_sequence(steps, pulses,
  rotation)`` spreads hits as evenly as possible over the grid.
- **Genre blueprints.** Core positions that are never cleared, plus
  ordered ``(probability, effect)`` rules tried as Bernoulli trials
  (house, techno, rock, funk, hiphop, breakbeat, dnb, reggae).
- **Motif memory.** The last five fragments per voice are remembered and
  recalled through one of eight transforms (invert, shift, sparsify,
  densify, sequence, fragment, retrograde, displace).
- **Sections and tension.** Intro, verse, chorus, bridge and outro scale
  density and dynamics; tension drives fill complexity.
- **Call and response.** Paired voices get out of each other's way, more
  so at the end of a phrase.
- **Fills.** Twelve templates in four tiers, mapped onto whatever snare
  and toms the kit has.
- **Humanization.** Role-aware timing jitter, energy push/pull, a
  velocity contour and rare surprises (drops, ghosts, flams).
- **Playability.** The assembler keeps every limb within its physical
  limits, delaying or dropping hits that come too soon.

Also included: a guitar-picking transformer (``dwummer.picking``) built on
the same pattern-table design, YAML configuration, a settings store for
remembering the last run, and a MIDI file writer.

Minimal example:

    ```python
    import dwummer

    config = dwummer.SessionConfig(seed=42, repetition_units=8, genre="house")
    result = dwummer.run(config)

    if result.ok:
        dwummer.write_midi(result.events, "groove.mid")
    ```

Package-level exports: ``Session``, ``SessionConfig``, ``VoiceConfig``,
``Event``, ``run``, ``write_midi``.
"""

import dwummer.config
import dwummer.event
import dwummer.midi_file
import dwummer.session


Session = dwummer.session.Session
SessionConfig = dwummer.config.SessionConfig
VoiceConfig = dwummer.config.VoiceConfig
Event = dwummer.event.Event
run = dwummer.session.run
write_midi = dwummer.midi_file.write_midi
