"""Unit tests for flight modes, pilot inputs and motor mixing."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quadsim.dynamics import VehicleParameters, rotor_forces_and_torques
from quadsim.gnc.control import (
    ControlAxes,
    ControlMixer,
    FlightMode,
    ManualInputs,
    mix_motors,
)

HOVER = VehicleParameters().hover_throttle


# =============================================================================
# Modes and Inputs
# =============================================================================


class TestFlightMode:
    """Test the flight mode enum."""

    def test_values(self):
        assert FlightMode("position_hold") is FlightMode.POSITION_HOLD
        assert {m.value for m in FlightMode} == {
            "manual", "stabilized", "altitude_hold", "position_hold", "waypoint",
        }

    def test_position_control_group(self):
        assert FlightMode.POSITION_HOLD.uses_position_control
        assert FlightMode.WAYPOINT.uses_position_control
        assert not FlightMode.ALTITUDE_HOLD.uses_position_control
        assert not FlightMode.MANUAL.uses_position_control


class TestManualInputs:
    """Test stick clamping."""

    def test_defaults(self):
        inputs = ManualInputs()
        assert inputs.throttle == 0.5
        assert inputs.roll == 0.0

    def test_clamped_on_construction(self):
        inputs = ManualInputs(pitch=2.0, roll=-3.0, yaw=0.5, throttle=-1.0)
        assert inputs.pitch == 1.0
        assert inputs.roll == -1.0
        assert inputs.yaw == 0.5
        assert inputs.throttle == 0.0

    def test_clamped_on_merge(self):
        inputs = ManualInputs().merged(throttle=1.7)
        assert inputs.throttle == 1.0
        assert inputs.pitch == 0.0


# =============================================================================
# Motor Mixing
# =============================================================================


class TestMixMotors:
    """Test the X-configuration mixing formula."""

    def test_base_only(self):
        assert_allclose(mix_motors(0.5, 0.0, 0.0, 0.0).to_array(), [0.5, 0.5, 0.5, 0.5])

    def test_roll(self):
        """Positive roll raises the right-hand motors (2 and 4)."""
        assert_allclose(mix_motors(0.5, 0.1, 0.0, 0.0).to_array(), [0.4, 0.6, 0.4, 0.6])

    def test_pitch(self):
        """Positive pitch raises the front motors (1 and 2)."""
        assert_allclose(mix_motors(0.5, 0.0, 0.1, 0.0).to_array(), [0.6, 0.6, 0.4, 0.4])

    def test_yaw(self):
        """Positive yaw raises the left-hand motors (1 and 3)."""
        assert_allclose(mix_motors(0.5, 0.0, 0.0, 0.1).to_array(), [0.6, 0.4, 0.6, 0.4])

    def test_combined_formula(self):
        """m1 = b+p+y-r, m2 = b+p-y+r, m3 = b-p+y-r, m4 = b-p-y+r."""
        base, roll, pitch, yaw = 0.5, 0.05, 0.1, 0.02
        expected = [
            base + pitch + yaw - roll,
            base + pitch - yaw + roll,
            base - pitch + yaw - roll,
            base - pitch - yaw + roll,
        ]
        assert_allclose(mix_motors(base, roll, pitch, yaw).to_array(), expected)
        assert_allclose(expected, [0.57, 0.63, 0.37, 0.43])

    def test_clamped(self):
        cmd = mix_motors(0.95, 0.1, 0.0, 0.0)
        assert cmd.motor2 == 1.0
        assert cmd.motor1 == pytest.approx(0.85)
        assert mix_motors(0.05, 0.1, 0.0, 0.0).motor1 == 0.0

    def test_commands_map_to_matching_torques(self):
        """Each axis command produces positive torque on its own axis."""
        params = VehicleParameters()
        for axis, args in enumerate([(0.1, 0.0, 0.0), (0.0, 0.1, 0.0), (0.0, 0.0, 0.1)]):
            _, torque = rotor_forces_and_torques(mix_motors(0.5, *args), params)
            assert torque[axis] > 0

    def test_pitch_is_decoupled(self):
        _, torque = rotor_forces_and_torques(mix_motors(0.5, 0.0, 0.1, 0.0), VehicleParameters())
        assert_allclose(torque[[0, 2]], np.zeros(2), atol=1e-12)

    def test_roll_and_yaw_share_motor_pairs(self):
        """Roll and yaw both act on the left pair against the right pair."""
        params = VehicleParameters()
        _, from_roll = rotor_forces_and_torques(mix_motors(0.5, 0.1, 0.0, 0.0), params)
        _, from_yaw = rotor_forces_and_torques(mix_motors(0.5, 0.0, 0.0, 0.1), params)

        assert_allclose(from_roll, -from_yaw, atol=1e-12)
        assert from_roll[1] == pytest.approx(0.0, abs=1e-12)

        _, cancelled = rotor_forces_and_torques(mix_motors(0.5, 0.1, 0.0, 0.1), params)
        assert_allclose(cancelled, np.zeros(3), atol=1e-12)


# =============================================================================
# Flight-Mode Mixer
# =============================================================================


class TestControlMixer:
    """Test per-mode combination of PID outputs and sticks."""

    outputs = ControlAxes(altitude=0.1, roll=0.2, pitch=-0.1, yaw=0.05)
    sticks = ManualInputs(pitch=0.5, roll=1.0, yaw=-0.5, throttle=0.6)

    def test_manual_ignores_pid(self):
        mixer = ControlMixer()
        base, roll, pitch, yaw = mixer.axis_inputs(
            FlightMode.MANUAL, self.outputs, self.sticks, HOVER,
        )
        assert (base, roll, pitch, yaw) == pytest.approx((0.6, 0.3, 0.15, -0.15))

    def test_stabilized_adds_sticks(self):
        mixer = ControlMixer()
        result = mixer.axis_inputs(FlightMode.STABILIZED, self.outputs, self.sticks, HOVER)
        assert result == pytest.approx((0.6, 0.2 + 0.2, -0.1 + 0.1, 0.05 - 0.1))

    def test_altitude_hold(self):
        """Throttle comes from the altitude loop, roll/pitch from the sticks."""
        mixer = ControlMixer()
        result = mixer.axis_inputs(FlightMode.ALTITUDE_HOLD, self.outputs, self.sticks, HOVER)
        assert result == pytest.approx((HOVER + 0.1, 0.2, 0.1, 0.05 - 0.1))

    @pytest.mark.parametrize("mode", [FlightMode.POSITION_HOLD, FlightMode.WAYPOINT])
    def test_position_modes_ignore_sticks(self, mode):
        mixer = ControlMixer()
        result = mixer.axis_inputs(mode, self.outputs, self.sticks, HOVER)
        assert result == pytest.approx((HOVER + 0.1, 0.2, -0.1, 0.05))

    def test_custom_authority(self):
        mixer = ControlMixer(manual_authority=0.5)
        _, roll, _, _ = mixer.axis_inputs(FlightMode.MANUAL, self.outputs, self.sticks, HOVER)
        assert roll == pytest.approx(0.5)

    def test_mix_returns_clamped_command(self):
        mixer = ControlMixer()
        cmd = mixer.mix(FlightMode.MANUAL, ControlAxes(), ManualInputs(throttle=1.0, roll=1.0), HOVER)
        assert cmd.motor2 == 1.0
        assert cmd.motor1 == pytest.approx(0.7)
