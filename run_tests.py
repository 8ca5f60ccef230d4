#!/usr/bin/env python3
"""
Unit Tests for the PoseWeave overlay

Covers:
A. Particles (smoothing, stability bounds, policies)
B. Slot pool + frame pass (first-fit, capacity, reclamation, layout reset)
C. Connection rendering (particle links, all pairs, determinism)
D. Sinks, config and the overlay facade
"""

import sys
import os
import tempfile
import traceback
from dataclasses import replace
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from poseweave.config import (
    STABILITY_MAX,
    CONTINUOUS_POLICY,
    GATED_POLICY,
    OverlayConfig,
    RenderMode,
)
from poseweave.connections import ConnectionRenderer, PseudoRandomSequence
from poseweave.frame_pass import FrameUpdatePass
from poseweave.overlay import PoseOverlay
from poseweave.particles import Particle
from poseweave.pose_types import Landmark, Pose
from poseweave.render_sink import Hsla, OpenCVSink, RecordingSink
from poseweave.slot_pool import LandmarkLayout, SlotPool


THREE = ("nose", "left_wrist", "right_wrist")


def make_pose(identity, x, y, score=1.0, names=THREE):
    """Pose with every named landmark at (x, y)."""
    return Pose(identity, tuple(Landmark(name, x, y, score) for name in names))


def make_pass(max_poses=2, names=THREE, **kwargs):
    return FrameUpdatePass(OverlayConfig(landmarks=names, max_poses=max_poses, **kwargs))


# ---------------------------------------------------------------------- #
# A. Particles
# ---------------------------------------------------------------------- #

def test_particle_stability_bounds():
    """Stability stays within [0, 100] under random update/decay sequences."""
    np.random.seed(42)
    for policy in (GATED_POLICY, CONTINUOUS_POLICY):
        p = Particle()
        for _ in range(2000):
            if np.random.rand() < 0.6:
                obs = Landmark("nose", np.random.uniform(0, 640), np.random.uniform(0, 480),
                               float(np.random.rand()))
                p.update(obs, policy=policy, threshold=0.3)
            p.post_update(bool(np.random.rand() < 0.5), policy)
            assert 0.0 <= p.stability <= STABILITY_MAX, f"{policy.name}: {p.stability}"
    print("  ✓ stability bounded for gated and continuous policies")


def test_particle_convergence():
    """Constant observation: distance shrinks by 0.8 per step, stability hits 100."""
    p = Particle()
    target = Landmark("nose", 100.0, 50.0, 1.0)
    prev = np.hypot(p.x - target.x, p.y - target.y)

    for frame in range(60):
        p.update(target, policy=GATED_POLICY, threshold=0.3, smoothing=0.2)
        p.post_update(True, GATED_POLICY)
        dist = np.hypot(p.x - target.x, p.y - target.y)
        assert dist < prev
        assert abs(dist - prev * 0.8) < 1e-9
        prev = dist
        if frame == 48:
            assert p.stability == 98.0

    assert p.stability == STABILITY_MAX
    print(f"  ✓ converged to ({p.x:.3f}, {p.y:.3f}), stability={p.stability}")


def test_gated_policy_skips_low_score():
    """Gated policy ignores low-score observations and decays them."""
    p = Particle()
    applied = p.update(Landmark("nose", 10, 10, 0.1), policy=GATED_POLICY, threshold=0.3)
    assert not applied
    assert (p.x, p.y, p.stability) == (0.0, 0.0, 0.0)

    p.update(Landmark("nose", 10, 10, 0.9), policy=GATED_POLICY, threshold=0.3)
    p.post_update(True, GATED_POLICY)
    assert p.stability == 2.0
    assert p.score == 0.9

    # Same group still matched, but this landmark was not observed
    p.update(Landmark("nose", 10, 10, 0.1), policy=GATED_POLICY, threshold=0.3)
    p.post_update(True, GATED_POLICY)
    assert p.stability == 0.0
    assert p.score == 0.0

    assert not p.update(None, policy=GATED_POLICY)
    print("  ✓ low-score and missing observations skipped")


def test_continuous_policy():
    """Continuous policy applies any observation and decays 0.5 every frame."""
    p = Particle()
    p.update(Landmark("nose", 10, 10, 0.05), policy=CONTINUOUS_POLICY, threshold=0.3)
    assert (p.x, p.y) == (2.0, 2.0)
    assert p.stability == 1.0
    p.post_update(True, CONTINUOUS_POLICY)
    assert p.stability == 0.5
    p.post_update(True, CONTINUOUS_POLICY)
    p.post_update(False, CONTINUOUS_POLICY)
    assert p.stability == 0.0
    print("  ✓ continuous policy: +1 per observation, -0.5 per frame")


# ---------------------------------------------------------------------- #
# B. Slot pool + frame pass
# ---------------------------------------------------------------------- #

def test_first_fit_assignment():
    """New identities take the lowest-index free slot."""
    frame_pass = make_pass(max_poses=3)
    frame_pass.run([make_pose("A", 10, 10), make_pose("B", 20, 20), make_pose("C", 30, 30)])
    assert [s.identity for s in frame_pass.pool] == ["A", "B", "C"]

    # A leaves: slot 0 is released at the end of the frame
    report = frame_pass.run([make_pose("B", 20, 20), make_pose("C", 30, 30)])
    assert report.released == ["A"]
    assert frame_pass.pool.slots[0].identity is None

    # D arrives while slot 0 is the only free one
    report = frame_pass.run([make_pose("B", 20, 20), make_pose("C", 30, 30), make_pose("D", 5, 5)])
    assert report.bound == ["D"]
    assert frame_pass.pool.slots[0].identity == "D"

    pool = SlotPool(2, LandmarkLayout(THREE))
    assert pool.find_or_bind("X").index == 0
    assert pool.find_or_bind("X").index == 0
    assert pool.find_or_bind("Y").index == 1
    print("  ✓ first-fit binding")


def test_capacity_exhaustion_drops_silently():
    """Poses beyond capacity are dropped without touching other slots."""
    frame_pass = make_pass(max_poses=2)
    report = frame_pass.run([make_pose(1, 0, 0), make_pose(2, 0, 0), make_pose(3, 0, 0)])
    assert report.matched == [1, 2]
    assert report.dropped == [3]
    assert frame_pass.pool.bound_count == 2
    print("  ✓ third pose dropped")


def test_unmatched_slot_decays_and_releases():
    """Unmatched slot is released on the first miss and fades to 0 in 50 frames."""
    frame_pass = make_pass(max_poses=2)
    for _ in range(50):
        frame_pass.run([make_pose("A", 100, 100)])
    slot = frame_pass.pool.slots[0]
    assert all(p.stability == STABILITY_MAX for p in slot.particles)

    report = frame_pass.run([])
    assert report.released == ["A"]
    assert slot.identity is None

    for _ in range(48):
        frame_pass.run([])
    assert all(p.stability == 2.0 for p in slot.particles)
    frame_pass.run([])
    assert all(p.stability == 0.0 for p in slot.particles)
    frame_pass.run([])
    assert all(p.stability == 0.0 for p in slot.particles)
    print("  ✓ released after one miss, stability 0 after 100 / 2 frames")


def test_continuous_policy_fades_in_200_misses():
    """Continuous policy: saturated slot released on first miss, 0 after 100 / 0.5 frames."""
    frame_pass = make_pass(max_poses=1, policy=CONTINUOUS_POLICY)
    for _ in range(250):
        frame_pass.run([make_pose("A", 100, 100)])
    slot = frame_pass.pool.slots[0]
    # +1 clamps at 100 inside the frame, then the every-frame -0.5 applies
    assert all(p.stability == STABILITY_MAX - 0.5 for p in slot.particles)

    for p in slot.particles:
        p.stability = STABILITY_MAX
    report = frame_pass.run([])
    assert report.released == ["A"]

    for _ in range(198):
        frame_pass.run([])
    assert all(p.stability == 0.5 for p in slot.particles)
    frame_pass.run([])
    assert all(p.stability == 0.0 for p in slot.particles)
    print("  ✓ continuous: released after one miss, stability 0 after 200 frames")


def test_low_confidence_landmark_in_matched_pose():
    """A low-score landmark holds position and fades while its pose stays bound."""
    frame_pass = make_pass(max_poses=1)
    for _ in range(10):
        frame_pass.run([make_pose("A", 50, 50)])
    slot = frame_pass.pool.slots[0]
    wrist_before = (slot.particles[1].x, slot.particles[1].y)

    pose = Pose("A", (
        Landmark("nose", 50, 50, 1.0),
        Landmark("left_wrist", 400, 400, 0.05),
        Landmark("right_wrist", 50, 50, 1.0),
    ))
    for _ in range(3):
        frame_pass.run([pose])

    assert slot.identity == "A"
    assert (slot.particles[1].x, slot.particles[1].y) == wrist_before
    assert slot.particles[1].stability == 20.0 - 6.0
    assert slot.particles[0].stability == 26.0
    print("  ✓ low-confidence wrist held and faded")


def test_missing_landmarks_routed_as_none():
    """Layout extraction keeps layout order and leaves gaps as None."""
    layout = LandmarkLayout(THREE)
    pose = Pose.from_points("A", {"right_wrist": (1, 2, 0.9), "left_ear": (3, 4, 0.9)})
    assert pose.landmark("left_ear").x == 3
    assert pose.landmark("nose") is None
    extracted = layout.extract(pose)
    assert extracted[0] is None and extracted[1] is None
    assert extracted[2].name == "right_wrist"
    assert layout.index_of("left_wrist") == 1
    print("  ✓ extraction ordered by layout")


def test_layout_change_resets_pool():
    """Changing the enabled landmarks rebuilds every slot on the next frame."""
    config = OverlayConfig(landmarks=THREE, max_poses=2)
    frame_pass = FrameUpdatePass(config)
    frame_pass.run([make_pose("A", 10, 10)])
    assert frame_pass.pool.slots[0].identity == "A"

    frame_pass.config = config.with_landmarks("nose", "left_wrist")
    report = frame_pass.run([make_pose("B", 10, 10)])
    assert report.layout_reset
    assert len(frame_pass.pool.slots[0].particles) == 2
    assert frame_pass.pool.slots[0].identity == "B"
    assert frame_pass.pool.slots[1].identity is None

    # Reordering is a layout change too
    frame_pass.config = config.with_landmarks("left_wrist", "nose")
    assert frame_pass.run([]).layout_reset
    print("  ✓ structural reset on layout change")


def test_end_to_end_scenario():
    """Two slots, one pose 'A' at (10, 10), then empty frames, then 'B'."""
    frame_pass = make_pass(max_poses=2)

    frame_pass.run([make_pose("A", 10, 10)])
    slot0 = frame_pass.pool.slots[0]
    assert slot0.identity == "A"
    for p in slot0.particles:
        assert (p.x, p.y) == (2.0, 2.0)
        assert p.stability == 2.0

    report = frame_pass.run([])
    assert report.released == ["A"]
    assert all(p.stability == 0.0 for p in slot0.particles)

    frame_pass.run([make_pose("B", 10, 10)])
    assert slot0.identity == "B"
    # Stale positions keep blending from where 'A' left them
    assert abs(slot0.particles[0].x - 3.6) < 1e-9
    print("  ✓ bind, move to (2, 2), release, rebind to 'B'")


# ---------------------------------------------------------------------- #
# C. Connections
# ---------------------------------------------------------------------- #

def test_pseudo_random_sequence_wraps():
    seq = PseudoRandomSequence(length=3, seed=7)
    assert len(seq) == 3
    assert seq[5] == seq[2]
    assert all(0.25 <= seq[i] < 1.0 for i in range(3))
    assert PseudoRandomSequence(3, seed=7)[1] == seq[1]
    print("  ✓ wraps modulo length, seeded")


def test_single_entity_self_links():
    """A lone entity is linked to itself, all particle combinations."""
    names = ("nose", "left_wrist")
    config = OverlayConfig(landmarks=names, max_poses=2, random_seed=1)
    frame_pass = FrameUpdatePass(config)
    frame_pass.run([make_pose("A", 10, 10, names=names)])

    renderer = ConnectionRenderer(config)
    sink = RecordingSink()
    drawn = renderer.render(frame_pass.pool.slots, sink, now_ms=0.0)

    assert drawn == 4
    assert len(sink.lines) == 4
    for k, line in enumerate(sink.lines):
        assert line.width == 4
        assert abs(line.color.hue - (k + 1)) < 1e-9
        assert abs(line.color.alpha - 0.02 * renderer.rand[k]) < 1e-12
    print("  ✓ 2 landmarks -> 4 self links")


def test_adjacent_entities_only():
    """Links join neighbours in left-to-right order, not every pair."""
    names = ("nose",)
    config = OverlayConfig(landmarks=names, max_poses=3, random_seed=3)
    frame_pass = FrameUpdatePass(config)
    frame_pass.run([
        make_pose("A", 300, 0, names=names),
        make_pose("B", 100, 0, names=names),
        make_pose("C", 200, 0, names=names),
    ])

    sink = RecordingSink()
    ConnectionRenderer(config).render(frame_pass.pool.slots, sink, now_ms=0.0)

    assert len(sink.lines) == 2
    xs = [(round(line.start[0], 6), round(line.end[0], 6)) for line in sink.lines]
    assert xs == [(20.0, 40.0), (40.0, 60.0)]
    assert abs(sink.lines[0].color.hue - 1.0) < 1e-9
    assert abs(sink.lines[1].color.hue - 7.0) < 1e-9
    print("  ✓ B-C and C-A linked, A-B not")


def test_zero_alpha_links_skipped():
    """Particles with no stability produce no links."""
    config = OverlayConfig(landmarks=THREE, max_poses=2)
    frame_pass = FrameUpdatePass(config)
    frame_pass.run([make_pose("A", 10, 10), make_pose("B", 50, 50, score=0.01)])
    assert frame_pass.pool.bound_count == 2

    sink = RecordingSink()
    assert ConnectionRenderer(config).render(frame_pass.pool.slots, sink, now_ms=0.0) == 0
    assert sink.commands == []
    print("  ✓ no strokes when min stability is 0")


def test_render_is_deterministic():
    """Same pool and timestamp -> identical commands; pool untouched."""
    config = OverlayConfig(landmarks=THREE, max_poses=3)
    frame_pass = FrameUpdatePass(config)
    for step in range(5):
        frame_pass.run([make_pose(1, 10 + step, 20), make_pose(2, 200, 40 + step)])

    renderer = ConnectionRenderer(config)
    before = [(p.x, p.y, p.stability) for p in frame_pass.pool.all_particles()]

    first, second = RecordingSink(), RecordingSink()
    renderer.render(frame_pass.pool.slots, first, now_ms=12345.0)
    renderer.render(frame_pass.pool.slots, second, now_ms=12345.0)

    assert first.commands == second.commands
    assert len(first.lines) == 9
    assert before == [(p.x, p.y, p.stability) for p in frame_pass.pool.all_particles()]
    print(f"  ✓ {len(first.commands)} identical commands")


def test_all_pairs_mode():
    """All-pairs: opaque then translucent subsets, score-gated."""
    config = OverlayConfig(
        landmarks=THREE, max_poses=2, render_mode=RenderMode.ALL_PAIRS,
        num_opaque=1, num_translucent=1, random_seed=5,
    )
    frame_pass = FrameUpdatePass(config)
    frame_pass.run([make_pose("A", 10, 10), make_pose("B", 100, 100)])

    renderer = ConnectionRenderer(config)
    sink = RecordingSink()
    assert renderer.render(frame_pass.pool.slots, sink, now_ms=0.0) == 2
    assert len(renderer.opaque_pairs) == 1 and len(renderer.translucent_pairs) == 1
    assert set(renderer.opaque_pairs + renderer.translucent_pairs) <= {(0, 1), (0, 2), (1, 2)}

    opaque, translucent = sink.lines
    assert 0.9 * 0.25 <= opaque.color.alpha <= 0.9
    assert translucent.color.alpha <= 0.25
    assert abs(opaque.color.hue - 90.0) < 1e-9

    # Lone entity: nothing to pair with
    solo = FrameUpdatePass(config)
    solo.run([make_pose("A", 10, 10)])
    assert renderer.render(solo.pool.slots, RecordingSink(), now_ms=0.0) == 0

    # Scores below threshold gate links even when particles were updated
    gated = replace(config, policy=CONTINUOUS_POLICY, score_threshold=0.5)
    low = FrameUpdatePass(gated)
    low.run([make_pose("A", 10, 10, score=0.2), make_pose("B", 100, 100)])
    assert ConnectionRenderer(gated).render(low.pool.slots, RecordingSink(), now_ms=0.0) == 0
    print("  ✓ all-pairs subsets and score gate")


def test_all_pairs_reshuffle_on_change():
    """Pair lists follow the opaque/translucent counts."""
    config = OverlayConfig(landmarks=THREE, render_mode="all_pairs", random_seed=2)
    renderer = ConnectionRenderer(config)
    renderer.reshuffle()
    assert len(renderer.opaque_pairs) == 3
    assert all(j < 3 for _, j in renderer.opaque_pairs)
    assert renderer.translucent_pairs == []

    renderer.config = replace(config, num_opaque=2)
    renderer._ensure_pairs(3)
    assert len(renderer.opaque_pairs) == 2
    assert len(renderer.translucent_pairs) == 1
    print("  ✓ reshuffled when counts change")


def test_all_pairs_render_before_layout_catches_up():
    """Rendering after a landmark change but before the next update uses the pool's layout."""
    five = THREE + ("left_shoulder", "right_shoulder")
    overlay = PoseOverlay(OverlayConfig(
        landmarks=THREE, max_poses=2, render_mode=RenderMode.ALL_PAIRS, random_seed=4,
    ))
    overlay.process([make_pose("A", 10, 10), make_pose("B", 100, 100)], RecordingSink(), now_ms=0.0)

    overlay.set_config(overlay.config.with_landmarks(*five))
    sink = RecordingSink()
    assert overlay.render(sink, now_ms=0.0) == 3
    assert len(overlay.pool.slots[0].particles) == 3

    overlay.update([make_pose("A", 10, 10, names=five), make_pose("B", 100, 100, names=five)])
    assert len(overlay.pool.slots[0].particles) == 5
    assert overlay.render(RecordingSink(), now_ms=0.0) == 10

    # Shrinking works the same way
    overlay.set_config(overlay.config.with_landmarks("nose", "left_wrist"))
    assert overlay.render(RecordingSink(), now_ms=0.0) == 10
    overlay.update([make_pose("A", 10, 10, names=five), make_pose("B", 100, 100, names=five)])
    assert overlay.render(RecordingSink(), now_ms=0.0) == 1
    print("  ✓ pairs sized from the slots, not the pending config")


# ---------------------------------------------------------------------- #
# D. Sinks, config, overlay
# ---------------------------------------------------------------------- #

def test_hsla_conversion():
    assert Hsla(0.0).to_bgr() == (0, 0, 255)
    assert Hsla(120.0).to_bgr() == (0, 255, 0)
    assert Hsla(480.0).to_bgr() == (0, 255, 0)
    assert Hsla(480.0).hue == 120.0
    assert Hsla(-120.0).hue == 240.0
    assert Hsla(240.0).to_bgr() == (255, 0, 0)
    green = Hsla.from_hex("#00ff00")
    assert abs(green.hue - 120.0) < 1e-3
    assert abs(green.lightness - 0.5) < 1e-3
    assert Hsla(300, 1.0, 0.5, 0.25).css() == "hsla(300, 100%, 50%, 0.25)"
    print("  ✓ HSL <-> BGR")


def test_opencv_sink_draws():
    frame = np.zeros((50, 50, 3), dtype=np.uint8)
    sink = OpenCVSink(frame)

    sink.fill_circle((25, 25), 5, Hsla(0.0, 1.0, 0.5, 1.0))
    assert tuple(frame[25, 25]) == (0, 0, 255)

    sink.stroke_line((0, 10), (49, 10), 1, Hsla(120.0, 1.0, 0.5, 0.5))
    assert 0 < frame[10, 25, 1] < 255

    sink.fill_circle((5, 40), 3, Hsla(0.0, 1.0, 0.5, 0.0))
    assert frame[40, 5].sum() == 0

    # Off-frame primitives are ignored
    sink.fill_circle((-100, -100), 5, Hsla(0.0))
    sink.stroke_line((-10, -10), (-5, -5), 2, Hsla(0.0))

    mirrored = np.zeros((50, 50, 3), dtype=np.uint8)
    OpenCVSink(mirrored, mirror=True).fill_circle((5, 25), 2, Hsla(0.0))
    assert mirrored[25, 44, 2] == 255
    assert mirrored[25, 5].sum() == 0
    print("  ✓ circles, lines, alpha, mirroring")


def test_config_validation():
    for bad in (
        dict(max_poses=0),
        dict(smoothing=0.0),
        dict(landmarks=()),
        dict(landmarks=("nose", "nose")),
        dict(policy="unknown"),
        dict(render_mode="sparkles"),
        dict(num_opaque=-1),
    ):
        try:
            OverlayConfig(**bad)
        except ValueError:
            continue
        raise AssertionError(f"accepted invalid config {bad}")

    config = OverlayConfig(policy="continuous", render_mode="all_pairs")
    assert config.policy is CONTINUOUS_POLICY
    assert config.render_mode == RenderMode.ALL_PAIRS
    print("  ✓ invalid configs rejected")


def test_config_from_env():
    """.env values load, process environment wins."""
    keys = ("POSEWEAVE_MAX_POSES", "POSEWEAVE_POLICY", "POSEWEAVE_LANDMARKS")
    saved = {k: os.environ.pop(k) for k in list(os.environ) if k.startswith("POSEWEAVE_")}
    try:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / ".env"
            env_file.write_text(
                "POSEWEAVE_MAX_POSES=3\n"
                "POSEWEAVE_POLICY=continuous\n"
                "POSEWEAVE_LANDMARKS=nose, left_wrist\n"
            )
            os.environ["POSEWEAVE_MAX_POSES"] = "2"
            config = OverlayConfig.from_env(env_file)

        assert config.max_poses == 2
        assert config.policy is CONTINUOUS_POLICY
        assert config.landmarks == ("nose", "left_wrist")
    finally:
        for k in keys:
            os.environ.pop(k, None)
        os.environ.update(saved)
    print("  ✓ .env + environment overrides")


def test_overlay_process():
    """Facade: particles for bound slots, links, skeleton debug view."""
    overlay = PoseOverlay(OverlayConfig(landmarks=THREE, max_poses=2, random_seed=0))
    sink = RecordingSink()
    stats = overlay.process([make_pose(7, 10, 10)], sink, now_ms=0.0)

    assert stats.report.bound == [7]
    assert stats.particles_drawn == 3
    assert len(sink.circles) == 3
    assert all(abs(c.color.alpha - 0.02) < 1e-12 for c in sink.circles)
    assert all(c.radius == 5 and c.color.hue == 300.0 for c in sink.circles)
    assert [c.center for c in sink.circles] == [(2.0, 2.0)] * 3
    assert stats.links_drawn == 9

    overlay.set_config(replace(overlay.config, show_skeleton=True))
    sink.clear()
    stats = overlay.process([make_pose(7, 10, 10, names=("nose", "left_eye", "left_ear"))], sink, now_ms=0.0)
    # Skeleton: nose-left_eye, left_eye-left_ear; keypoints: 3 discs
    assert len(sink.commands) >= 5
    assert sink.commands[0].width == 2

    overlay.set_config(replace(overlay.config, max_poses=4))
    assert len(overlay.pool) == 4
    print("  ✓ process, config swaps")



def test_package_video_helpers():
    """Video helpers are importable from the package root and work on plain frames."""
    import poseweave

    frame = np.zeros((20, 30, 3), dtype=np.uint8)
    frame[:, :10] = (0, 0, 255)

    gray = poseweave.grayscale_backdrop(frame)
    assert gray.shape == (20, 30, 3)
    assert np.all(gray[:, :, 0] == gray[:, :, 2])

    flipped = poseweave.mirror(frame)
    assert flipped[0, 29, 2] == 255 and flipped[0, 0, 2] == 0

    perf = poseweave.PerformanceOverlay(history_size=5)
    for _ in range(10):
        perf.update()
    assert len(perf._intervals) == 5
    assert perf.draw(np.zeros((80, 200, 3), dtype=np.uint8), "people: 0/6") is not None

    with tempfile.TemporaryDirectory() as tmp:
        missing = poseweave.VideoFileReader(str(Path(tmp) / "missing.mp4"))
        assert not missing.start()
        assert not missing.is_running
        assert missing.latest_frame is None
        missing.stop()
    assert issubclass(poseweave.VideoFileReader, poseweave.ThreadedVideoCapture)
    print("  ✓ backdrop, mirror, fps counter, failed open")

TESTS = [
    ("A1 particle stability bounds", test_particle_stability_bounds),
    ("A2 particle convergence", test_particle_convergence),
    ("A3 gated policy", test_gated_policy_skips_low_score),
    ("A4 continuous policy", test_continuous_policy),
    ("B1 first-fit assignment", test_first_fit_assignment),
    ("B2 capacity exhaustion", test_capacity_exhaustion_drops_silently),
    ("B3 decay and release", test_unmatched_slot_decays_and_releases),
    ("B3b continuous fade", test_continuous_policy_fades_in_200_misses),
    ("B4 low-confidence landmark", test_low_confidence_landmark_in_matched_pose),
    ("B5 landmark extraction", test_missing_landmarks_routed_as_none),
    ("B6 layout reset", test_layout_change_resets_pool),
    ("B7 end-to-end", test_end_to_end_scenario),
    ("C1 pseudo-random sequence", test_pseudo_random_sequence_wraps),
    ("C2 self links", test_single_entity_self_links),
    ("C3 adjacent entities", test_adjacent_entities_only),
    ("C4 zero alpha", test_zero_alpha_links_skipped),
    ("C5 determinism", test_render_is_deterministic),
    ("C6 all pairs", test_all_pairs_mode),
    ("C7 all pairs reshuffle", test_all_pairs_reshuffle_on_change),
    ("C8 all pairs after landmark change", test_all_pairs_render_before_layout_catches_up),
    ("D1 HSLA", test_hsla_conversion),
    ("D2 OpenCV sink", test_opencv_sink_draws),
    ("D3 config validation", test_config_validation),
    ("D4 config from env", test_config_from_env),
    ("D5 overlay", test_overlay_process),
    ("D6 video helpers", test_package_video_helpers),
]


def main():
    """Run all tests."""
    print("\n" + "=" * 60)
    print("PoseWeave - Unit Tests")
    print("=" * 60)

    results = []
    for name, test in TESTS:
        print(f"\n{name}")
        try:
            test()
            results.append((name, True))
        except AssertionError as e:
            print(f"\n✗ FAILED: {e}")
            traceback.print_exc()
            results.append((name, False))
        except Exception as e:
            print(f"\n✗ ERROR: {e}")
            traceback.print_exc()
            results.append((name, False))

    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    for name, passed in results:
        status = "✓ PASSED" if passed else "✗ FAILED"
        print(f"  {name}: {status}")

    all_passed = all(passed for _, passed in results)
    print("\n" + ("=" * 60))
    print("✓ ALL TESTS PASSED" if all_passed else "✗ SOME TESTS FAILED")
    print("=" * 60 + "\n")

    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
