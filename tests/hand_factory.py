"""
Synthetic hand landmarks for tests.

A right-side-up hand in image pixels, wrist at (300, 400), fingers pointing
up (decreasing y). Poses are built so the default classifier thresholds
separate them clearly:

    open      all four fingers straight, thumb straight out
    fist      fingertips folded back over the palm, close together
    pointing  index straight, the rest folded
    victory   index and middle straight (matches no pose)
"""

from gesture_control.core.types import Frame, Hand, Landmark, LandmarkIndex

WRIST = (300.0, 400.0)

# Finger column x, shared by MCP, PIP, DIP and an extended tip
FINGER_X = {"index": 260.0, "middle": 290.0, "ring": 320.0, "pinky": 350.0}
MCP_Y, PIP_Y, DIP_Y, TIP_Y = 300.0, 260.0, 230.0, 200.0

# Folded fingertips, tucked under the PIP joints
CURLED_TIPS = {
    "index": (290.0, 320.0),
    "middle": (298.0, 322.0),
    "ring": (306.0, 322.0),
    "pinky": (314.0, 320.0),
}
CURLED_DIP_Y = 290.0

THUMB_CMC = (270.0, 380.0)
THUMB_MCP = (240.0, 360.0)
THUMB_IP_EXTENDED = (210.0, 340.0)
THUMB_TIP_EXTENDED = (180.0, 320.0)
THUMB_IP_CURLED = (255.0, 345.0)
THUMB_TIP_CURLED = (270.0, 340.0)

EXTENDED = {
    "open": {"index", "middle", "ring", "pinky"},
    "fist": set(),
    "pointing": {"index"},
    "victory": {"index", "middle"},
}

_FINGER_LANDMARKS = {
    "index": (LandmarkIndex.INDEX_MCP, LandmarkIndex.INDEX_PIP,
              LandmarkIndex.INDEX_DIP, LandmarkIndex.INDEX_TIP),
    "middle": (LandmarkIndex.MIDDLE_MCP, LandmarkIndex.MIDDLE_PIP,
               LandmarkIndex.MIDDLE_DIP, LandmarkIndex.MIDDLE_TIP),
    "ring": (LandmarkIndex.RING_MCP, LandmarkIndex.RING_PIP,
             LandmarkIndex.RING_DIP, LandmarkIndex.RING_TIP),
    "pinky": (LandmarkIndex.PINKY_MCP, LandmarkIndex.PINKY_PIP,
              LandmarkIndex.PINKY_DIP, LandmarkIndex.PINKY_TIP),
}


def make_keypoints(pose="open", offset_x=0.0, offset_y=0.0):
    """21 image-space landmarks for the given pose, shifted by the offset."""
    points = [None] * 21
    points[LandmarkIndex.WRIST] = WRIST

    thumb_out = pose == "open"
    points[LandmarkIndex.THUMB_CMC] = THUMB_CMC
    points[LandmarkIndex.THUMB_MCP] = THUMB_MCP
    points[LandmarkIndex.THUMB_IP] = THUMB_IP_EXTENDED if thumb_out else THUMB_IP_CURLED
    points[LandmarkIndex.THUMB_TIP] = THUMB_TIP_EXTENDED if thumb_out else THUMB_TIP_CURLED

    for finger, (mcp, pip, dip, tip) in _FINGER_LANDMARKS.items():
        x = FINGER_X[finger]
        points[mcp] = (x, MCP_Y)
        points[pip] = (x, PIP_Y)
        if finger in EXTENDED[pose]:
            points[dip] = (x, DIP_Y)
            points[tip] = (x, TIP_Y)
        else:
            points[dip] = (x, CURLED_DIP_Y)
            points[tip] = CURLED_TIPS[finger]

    return [Landmark(x=x + offset_x, y=y + offset_y) for x, y in points]


def make_keypoints_3d(facing_left=True):
    """World landmarks; only the wrist and two MCPs define the palm plane."""
    points = [Landmark(x=0.0, y=0.0, z=0.0) for _ in range(21)]
    points[LandmarkIndex.INDEX_MCP] = Landmark(x=0.0, y=-0.08, z=0.0)
    if facing_left:
        # Normal = (1, 0, 0)
        points[LandmarkIndex.PINKY_MCP] = Landmark(x=0.0, y=-0.07, z=-0.03)
    else:
        # Normal = (0, 0, 1)
        points[LandmarkIndex.PINKY_MCP] = Landmark(x=0.03, y=-0.07, z=0.0)
    return points


def make_hand(pose="open", offset_x=0.0, offset_y=0.0, handedness="Right",
              facing_left=False, with_3d=True):
    return Hand(
        keypoints=make_keypoints(pose, offset_x, offset_y),
        keypoints_3d=make_keypoints_3d(facing_left) if with_3d else None,
        handedness=handedness,
        score=0.95,
    )


def scrub_hand(wrist_x):
    """Open palm facing left with its wrist at ``wrist_x``."""
    return make_hand("open", offset_x=wrist_x - WRIST[0], facing_left=True)


def volume_frame(index_tip_y, left_offset_x=-150.0, right_offset_x=150.0,
                 left_label="Left", right_label="Right"):
    """Left open palm plus right hand pointing with its index tip at ``index_tip_y``."""
    left = make_hand("open", offset_x=left_offset_x, handedness=left_label)
    right = make_hand("pointing", offset_x=right_offset_x,
                      offset_y=index_tip_y - TIP_Y, handedness=right_label)
    return Frame(hands=(left, right))


class FakeClock:
    """Monotonic clock under test control (seconds)."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
