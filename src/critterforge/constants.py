"""Shared constants and paths for CritterForge."""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"
CREATURE_CONFIG_DIR = CONFIG_DIR / "creatures"

# Spine defaults
DEFAULT_FRICTION = 0.95
DEFAULT_MAX_ANGLE_DEG = 120.0
DEFAULT_POINT_WIDTH = 10.0
CONSTRAINT_ITERATIONS = 5

# Undulation (traveling lateral wave)
UNDULATION_SPEED = 0.15
UNDULATION_AMPLITUDE = 0.3
UNDULATION_WAVELENGTH = 0.8
UNDULATION_MIN_HEAD_SPEED = 0.5   # Wave only runs above this head speed
UNDULATION_PHASE_SPEED_CAP = 3.0  # Phase advance uses min(speed, cap)
UNDULATION_SPEED_NORM = 2.0       # Amplitude factor = min(speed / norm, 1)
UNDULATION_BLEND = 0.1

# Curvature influence from limbs
INFLUENCE_THRESHOLD = 1e-3
INFLUENCE_ROTATION_GAIN = 0.02    # Radians per unit of accumulated influence
CURVATURE_GAIN = 0.3              # (left - right) * gain

# Inverse kinematics
IK_ITERATIONS = 10
IK_TOLERANCE = 0.1
IK_BEND_STRENGTH = 0.5
TWO_BONE_EPSILON = 0.01
MIN_AXIS_LENGTH = 0.01

# Footstep planner, as fractions of total limb reach
WRONG_SIDE_FRACTION = 0.25
MIN_SIDE_FRACTION = 0.3
MAX_STRIDE_FRACTION = 0.4
REST_OFFSET_FRACTION = 0.5
STEP_MIRROR_FACTOR = 0.8
OVERREACH_FRACTION = 0.95
FORWARD_STEP_FRACTION = 0.2
BEND_HINT_FRACTION = 0.5

STEP_RATE = 0.15        # Progress per tick (~7 ticks per step)
STEP_ARC_HEIGHT = 20.0  # Ground clearance, screen space (-y is up)

# Limb rendering widths
LIMB_MAX_WIDTH = 12.0
LIMB_WIDTH_TAPER = 0.7  # Foot keeps 30% of the root width
LIMB_BEND_STRENGTH = 0.7

# Gait coordinator
LATERAL_ATTACH_FRACTION = 0.4  # Anchor offset per side, times local width
