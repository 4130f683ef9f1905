"""Main entry point for the fretsight CLI."""

import re
import time
from typing import Optional

import click
import pyfiglet

from ..calibration import get_calibration_direction, get_detection_zone
from ..fretboard import DISPLAY_FRETS, GUITAR_STRINGS, find_positions, has_fret_marker
from ..logger import get_logger
from ..logging_config import setup_logging
from ..music_theory import (
    NOTE_NAMES,
    convert_note_notation,
    format_note,
    midi_to_note_name,
    midi_to_octave,
)
from ..note_types import AudioData, VisionData
from ..resolver import resolve_position
from ..scales import (
    SCALE_DISPLAY_NAMES,
    ScaleType,
    get_all_scale_types,
    get_scale_positions_on_fretboard,
)
from ..tuner import format_cents, read_tuning
from ..core.config import ConfigManager
from ..core.interfaces import DeviceError
from ..core.state import AppState
from ..core.storage import CalibrationStore, KeyValueStore

logger = get_logger(__name__)

NOTE_PATTERN = re.compile(r"^([A-G][#b]?)(-?\d+)$")


def parse_note(text: str) -> int:
    """Parse a MIDI number or a note like 'A2', 'C#3' or 'Db3' into a MIDI note.

    Raises:
        click.BadParameter: If the text is neither
    """
    text = text.strip()
    if text.lstrip("-").isdigit():
        return int(text)

    match = NOTE_PATTERN.match(convert_note_notation(text.capitalize(), to_flats=False))
    if not match or match.group(1) not in NOTE_NAMES:
        raise click.BadParameter(f"'{text}' is not a note like A2, C#3 or a MIDI number")
    name, octave = match.group(1), int(match.group(2))
    return (octave + 1) * 12 + NOTE_NAMES.index(name)


def _store_for(config_manager: ConfigManager) -> CalibrationStore:
    return CalibrationStore(KeyValueStore(str(config_manager.config_dir / "store.json")))


def _describe_note(midi_note: int) -> str:
    return format_note(midi_to_note_name(midi_note), midi_to_octave(midi_note))


def _create_factory(config_manager: ConfigManager):
    # Hardware libraries load only for commands that touch devices
    from ..core.factory import ComponentFactory

    return ComponentFactory(config_manager)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    envvar="FRETSIGHT_CONFIG_DIR",
    default=None,
    help="Configuration directory (default ~/.config/fretsight)",
)
@click.pass_context
def cli(ctx, debug, config_dir):
    """fretsight - guitar fret position from pitch and hand tracking"""
    setup_logging("DEBUG" if debug else None)
    ctx.obj = ConfigManager(config_dir)


@cli.command()
@click.pass_obj
def devices(config_manager):
    """List audio inputs and cameras"""
    factory = _create_factory(config_manager)
    store = _store_for(config_manager)
    for title, device, key in (
        ("Audio inputs", factory.create_audio_capture(), "audio_device"),
        ("Cameras", factory.create_camera(), "camera_device"),
    ):
        click.echo(f"{title}:")
        try:
            found = device.list_devices()
        except DeviceError as e:
            click.echo(f"  Error: {e}")
            continue
        selected = store.load_device(key)
        for info in found:
            marker = "*" if info.device_id == selected else " "
            click.echo(f" {marker} [{info.device_id}] {info.name}")
        if not found:
            click.echo("  (none found)")


@cli.command()
@click.argument("note")
@click.option("--fret", "-f", type=int, default=None, help="Estimated fret of the hand; omit for no hand")
@click.option("--tolerance", "-t", type=int, default=None, help="Fret tolerance (default from settings)")
@click.pass_obj
def resolve(config_manager, note, fret, tolerance):
    """Resolve where NOTE is played given the hand's estimated fret"""
    midi_note = parse_note(note)
    if tolerance is None:
        tolerance = config_manager.get_config("settings")["fret_tolerance"]

    positions = find_positions(midi_note)
    result = resolve_position(
        AudioData(midi_note=midi_note, possible_positions=positions),
        VisionData(
            hand_detected=fret is not None,
            estimated_fret=fret if fret is not None else 0,
            tolerance=tolerance,
        ),
    )

    click.echo(f"Note: {_describe_note(midi_note)} (MIDI {midi_note})")
    click.echo(f"Candidates: {', '.join(str(p) for p in positions) or 'none'}")
    click.echo(f"Confidence: {result.confidence.value}")
    if result.position:
        click.echo(f"Position: string {result.position.string}, fret {result.position.fret}")
    click.echo(f"Reasoning: {result.reasoning}")


def _print_reading(frequency: float) -> None:
    reading = read_tuning(frequency)
    if reading is None:
        click.echo(f"{frequency:.2f} Hz: not close to any open string")
        return
    click.echo(
        f"{frequency:.2f} Hz: string {reading.target.string} ({reading.target.label}) "
        f"{format_cents(reading.cents)} cents, {reading.status.value}"
    )


@cli.command()
@click.argument("frequency", type=float, required=False)
@click.option("--device", "-d", default=None, help="Audio input device id for live tuning")
@click.option("--duration", type=float, default=30.0, help="Seconds to listen when tuning live")
@click.pass_obj
def tuner(config_manager, frequency, device, duration):
    """Show how far FREQUENCY (or the live input) is from the nearest open string"""
    if frequency is not None:
        if frequency <= 0:
            raise click.BadParameter("frequency must be positive")
        _print_reading(frequency)
        return

    factory = _create_factory(config_manager)
    state = factory.create_state()
    pipeline = factory.create_pitch_pipeline(state)
    state.open_tuner()
    if not pipeline.start_listening(device or state.audio.device_id):
        raise click.ClickException(pipeline.error_message)

    click.echo("Listening, play an open string (Ctrl-C to stop)")
    last_midi = None
    try:
        end = time.monotonic() + duration
        while time.monotonic() < end:
            note = state.audio.current_note
            if note and note.midi_note != last_midi:
                _print_reading(note.frequency)
            last_midi = note.midi_note if note else None
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        pipeline.stop_listening()
        state.close_tuner()


@cli.command()
@click.argument("root", default="A")
@click.argument(
    "scale_type",
    type=click.Choice([s.value for s in get_all_scale_types()]),
    default=ScaleType.PENTATONIC_MINOR.value,
)
@click.option("--frets", type=int, default=DISPLAY_FRETS, help="Highest fret to show")
def scale(root, scale_type, frets):
    """Print a fretboard chart of a scale"""
    root = convert_note_notation(root.strip().capitalize(), to_flats=False)
    if root not in NOTE_NAMES:
        raise click.BadParameter(f"'{root}' is not a note name")

    scale_type = ScaleType(scale_type)
    positions = {
        (p.string, p.fret): p for p in get_scale_positions_on_fretboard(root, scale_type, frets)
    }

    click.echo(f"{root} {SCALE_DISPLAY_NAMES[scale_type]}")
    header = "".join(f"{fret:>4}" for fret in range(frets + 1))
    click.echo(f"     {header}")
    # High string on top, like a tab
    for guitar_string in reversed(GUITAR_STRINGS):
        cells = []
        for fret in range(frets + 1):
            position = positions.get((guitar_string.string, fret))
            if position is None:
                cells.append("   -")
            elif position.is_root:
                cells.append(f"{'[' + position.note_name + ']':>4}")
            else:
                cells.append(f"{position.note_name:>4}")
        click.echo(f"{guitar_string.name:>4} {''.join(cells)}")
    markers = "".join(
        {"single": "   .", "double": "   :"}.get(has_fret_marker(fret), "    ")
        for fret in range(frets + 1)
    )
    click.echo(f"     {markers}")


@cli.group()
def calibration():
    """Show, clear or capture the hand calibration"""


@calibration.command("show")
@click.pass_obj
def calibration_show(config_manager):
    """Show the saved calibration"""
    saved = _store_for(config_manager).load_calibration()
    if saved is None:
        click.echo("Not calibrated")
        return
    zone_min, zone_max = get_detection_zone(saved)
    click.echo(f"Fret 1 x:          {saved.fret1_x:.3f}")
    click.echo(f"Fret 12 x:         {saved.fret12_x:.3f}")
    click.echo(f"Picking boundary:  {saved.picking_boundary_x:.3f}")
    click.echo(f"Left-handed:       {'yes' if saved.is_left_handed else 'no'}")
    click.echo(f"Direction:         {get_calibration_direction(saved)}")
    click.echo(f"Detection zone:    {zone_min:.3f} - {zone_max:.3f}")


@calibration.command("clear")
@click.pass_obj
def calibration_clear(config_manager):
    """Delete the saved calibration"""
    AppState(store=_store_for(config_manager)).reset_calibration()
    click.echo("Calibration cleared")


def _capture_x(state: AppState, label: str) -> Optional[float]:
    click.prompt(f"{label}, then press Enter", default="", show_default=False)
    if not state.vision.hand_detected or state.vision.smoothed_x is None:
        click.echo("No hand detected, try again")
        return None
    click.echo(f"  captured x={state.vision.smoothed_x:.3f}")
    return state.vision.smoothed_x


@calibration.command("run")
@click.option("--camera", "-c", default=None, help="Camera device id")
@click.pass_obj
def calibration_run(config_manager, camera):
    """Capture a new calibration with the camera"""
    factory = _create_factory(config_manager)
    state = factory.create_state()
    pipeline = factory.create_hand_pipeline(state)
    if not pipeline.start(camera or state.vision.device_id):
        raise click.ClickException(pipeline.error_message)

    try:
        state.start_calibration()
        steps = (
            ("Hold your picking hand at the edge of where you pick", state.capture_picking_zone),
            ("Put your fretting hand at fret 1", state.capture_fret1),
        )
        for label, capture in steps:
            x = None
            while x is None:
                x = _capture_x(state, label)
            capture(x)

        while True:
            pipeline.reset_smoother()
            x = _capture_x(state, "Put your fretting hand at fret 12")
            if x is None:
                continue
            if state.capture_fret12(x):
                break
            click.echo("Fret 1 and fret 12 are too close together, capture fret 1 again")
            x = None
            while x is None:
                x = _capture_x(state, "Put your fretting hand at fret 1")
            state.capture_fret1(x)

        state.finish_calibration()
        click.echo(f"Calibration saved: {get_calibration_direction(state.calibration)}")
    except click.Abort:
        state.cancel_calibration()
        raise
    finally:
        pipeline.close()


@cli.command()
@click.option("--device", "-d", default=None, help="Audio input device id")
@click.option("--camera", "-c", default=None, help="Camera device id")
@click.option("--no-camera", is_flag=True, help="Audio only")
@click.option("--test-tone", type=float, default=None, help="Use a generated tone instead of the input")
@click.option("--dry-run", is_flag=True, help="Use scripted sensors instead of hardware")
@click.option("--duration", type=float, default=0, help="Seconds to run, 0 for until Ctrl-C")
@click.option("--big", is_flag=True, help="Show the detected note in large letters")
@click.pass_obj
def monitor(config_manager, device, camera, no_camera, test_tone, dry_run, duration, big):
    """Show the resolved fret position live"""
    factory = _create_factory(config_manager)
    state = factory.create_state()

    if dry_run:
        from ..mock_sensors import (
            MockCaptureDevice,
            MockHandLandmarker,
            MockPitchDetector,
            make_hand,
        )

        pitch_pipeline = factory.create_pitch_pipeline(
            state,
            capture_device=MockCaptureDevice(),
            pitch_detector=MockPitchDetector([(110.0, 0.95)]),
        )
        hand_pipeline = factory.create_hand_pipeline(
            state,
            camera=MockCaptureDevice(video=True),
            landmarker=MockHandLandmarker([[make_hand(0.4)]] * 10000),
        )
    else:
        pitch_pipeline = factory.create_pitch_pipeline(state)
        hand_pipeline = None if no_camera else factory.create_hand_pipeline(state)

    if test_tone:
        started = pitch_pipeline.start_test_tone(test_tone)
    else:
        started = pitch_pipeline.start_listening(device or state.audio.device_id)
    if not started:
        raise click.ClickException(pitch_pipeline.error_message)

    if hand_pipeline and not hand_pipeline.start(camera or state.vision.device_id):
        click.echo(f"{hand_pipeline.error_message}; continuing with audio only")

    if not state.is_calibrated():
        click.echo("Not calibrated: run 'fretsight calibration run' to use hand tracking")

    last_line = None
    try:
        end = time.monotonic() + duration if duration else None
        while end is None or time.monotonic() < end:
            note = state.audio.current_note
            result = state.get_resolved_position()
            fret_range = state.get_fret_range()
            note_str = format_note(note.note_name, note.octave) if note else "--"
            where = str(result.position) if result.position else "-"
            hand = (
                f"hand fret {state.vision.estimated_fret} ({fret_range.min}-{fret_range.max})"
                if state.vision.hand_detected
                else "no hand"
            )
            line = f"{note_str:<4} {where:<7} {result.confidence.value:<6} {hand} | {result.reasoning}"
            if line != last_line:
                if big and note:
                    click.echo(pyfiglet.figlet_format(f"{note_str} {where}"))
                click.echo(line)
                last_line = line
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        pitch_pipeline.stop_listening()
        if hand_pipeline:
            hand_pipeline.close()


def main():
    cli()


if __name__ == "__main__":
    main()
