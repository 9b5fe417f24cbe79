#!/usr/bin/env python3
"""
Rotor BEM CLI Runner.

This script provides a command-line interface for computing power curves
and annual energy production from YAML configuration files.

Usage:
    python -m rotor_bem.cli.run_bem config.yaml [options]

Examples:
    # Power curve and AEP from YAML
    python -m rotor_bem.cli.run_bem rotor.yaml

    # Write results to a folder and plot them
    python -m rotor_bem.cli.run_bem rotor.yaml --output results --plot

    # Validate configuration without running
    python -m rotor_bem.cli.run_bem rotor.yaml --validate

    # Generate template configuration
    python -m rotor_bem.cli.run_bem --template > my_rotor.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

# Template YAML configuration
TEMPLATE_CONFIG = """# Rotor BEM Configuration
# =======================

#============================================================================
# TURBINE GEOMETRY (angles in degrees)
#============================================================================
geometry:
  hub_radius: 1.5
  cone: 2.5
  yaw: 0.0
  tilt: 5.0
  tower_distance: 3.0
  hub_height: 80.0
  num_blades: 3

#============================================================================
# BLADE SECTIONS (radius from blade root [m], twist [deg])
#============================================================================
blade:
  - {radius: 2.0,  chord: 3.0, twist: 15.0, airfoil: "thick"}
  - {radius: 6.0,  chord: 3.2, twist: 11.0, airfoil: "thick"}
  - {radius: 10.0, chord: 2.9, twist: 8.0,  airfoil: "thin"}
  - {radius: 14.0, chord: 2.6, twist: 6.0,  airfoil: "thin"}
  - {radius: 18.0, chord: 2.3, twist: 4.5,  airfoil: "thin"}
  - {radius: 22.0, chord: 2.0, twist: 3.2,  airfoil: "thin"}
  - {radius: 26.0, chord: 1.7, twist: 2.2,  airfoil: "thin"}
  - {radius: 30.0, chord: 1.4, twist: 1.3,  airfoil: "thin"}
  - {radius: 34.0, chord: 1.1, twist: 0.6,  airfoil: "thin"}
  - {radius: 38.5, chord: 0.6, twist: 0.0,  airfoil: "thin"}

#============================================================================
# AIRFOIL POLARS (alpha [deg]); "flat_plate" is always available
#============================================================================
airfoils:
  thin:
    alpha: [-180, -90, -20, -10, -5, 0, 5, 10, 14, 20, 40, 90, 180]
    cl:    [0.0, 0.0, -0.6, -0.7, -0.15, 0.4, 0.95, 1.35, 1.45, 1.05, 1.0, 0.0, 0.0]
    cd:    [0.02, 1.9, 0.25, 0.02, 0.009, 0.007, 0.009, 0.014, 0.04, 0.2, 0.8, 1.9, 0.02]
    cm:    [0.0, 0.5, 0.05, -0.04, -0.07, -0.08, -0.09, -0.09, -0.10, -0.15, -0.30, -0.5, 0.0]
  thick:
    alpha: [-180, -90, -20, -10, 0, 10, 20, 90, 180]
    cl:    [0.0, 0.0, -0.4, -0.5, 0.2, 1.0, 0.9, 0.0, 0.0]
    cd:    [0.05, 1.8, 0.3, 0.05, 0.02, 0.05, 0.3, 1.8, 0.05]

#============================================================================
# INFLOW
#============================================================================
flow:
  shear: "power_law"   # "none", "log", "power_law" or "diabatic"
  shear_exponent: 0.14
  surface_roughness: 0.03
  obukhov_length: 500.0
  veer: false
  veer_rate: 0.0       # [deg per rotor radius]

#============================================================================
# BEM SOLVER
#============================================================================
solver:
  air_density: 1.225
  kinematic_viscosity: 1.5e-5
  speed_of_sound: 340.0
  convergence_tolerance: 1.0e-6
  wake_transition: 0.4
  tip_extra_distance: 0.0
  tip_loss: true
  hub_loss: true
  hub_loss_at_root: false   # measure hub loss from the innermost section

#============================================================================
# CONTROLLER (speeds in rpm, power in W)
#============================================================================
controller:
  rated_power: 1.5e+6
  speed_setpoint: 20.0
  max_speed: 20.0
  min_speed: 9.0
  optimal_tsr: 7.5
  max_dp_dn: 5.0e+5
  power_mode: "L0"     # "L0" (optimal TSR) or "POWER" (power_speed_table)
  base_pitch: 0.0
  pitch_breakpoints: [1.4e+6]
  pitch_deltas: [2.0]  # [deg per 100 kW]
  efficiency: 0.94

#============================================================================
# POWER CURVE
#============================================================================
operation:
  wind_speed_start: 3.0
  wind_speed_end: 25.0
  wind_speed_step: 1.0
  pitch: 0.0
  n_sectors: 1
  min_iterations: 3
  max_iterations: 50
  power_tolerance: 1.0e-4

#============================================================================
# ANNUAL ENERGY PRODUCTION
#============================================================================
aep:
  weibull_k: 2.0
  energy_price: 0.08   # per kWh
  mean_wind_speeds: [6.0, 7.0, 8.0, 9.0]
  bin_width: 0.5

output:
  power_curve_file: "power_curve.csv"
  aep_file: "aep.csv"
  plot_file: "power_curve.png"
"""


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def validate_config(config_path: str) -> bool:
    """Validate configuration file without running."""
    from rotor_bem.analysis.rotor import build_geometry
    from rotor_bem.core.config import RotorSimulationConfig

    try:
        config = RotorSimulationConfig.from_yaml(config_path)
        build_geometry(config)
    except (OSError, ValueError) as e:
        print(f"\n✗ Validation failed: {e}")
        return False

    warnings = config.validate()
    print("Configuration validation:")
    print("=" * 50)
    print(config)

    if warnings:
        print("\nWarnings:")
        for w in warnings:
            print(f"  ⚠️  {w}")
        return False
    print("\n✓ Configuration is valid")
    return True


def print_results(curve, aep_results) -> None:
    """Print power curve and AEP tables to stdout."""
    print("\n  v[m/s]  TSR[-]  pitch[deg]  n[rpm]     Cp      Ct   P_el[kW]  conv")
    print("  " + "-" * 70)
    for p in curve:
        print(
            f"  {p.wind_speed:6.2f}  {p.tip_speed_ratio:6.3f}  {p.pitch:10.3f}  "
            f"{p.rotor_speed:6.2f}  {p.cp:6.4f}  {p.ct:6.4f}  "
            f"{p.electrical_power / 1e3:9.1f}  {'yes' if p.converged else 'NO'}"
        )
    print("\n  v_mean[m/s]   AEP[MWh]     revenue")
    print("  " + "-" * 36)
    for r in aep_results:
        print(f"  {r.mean_wind_speed:11.2f}  {r.energy_kwh / 1e3:9.1f}  {r.revenue:10.2f}")


def run(config_path: Path, output_dir: Path, plot: bool, workers) -> int:
    from rotor_bem.analysis.rotor import RotorAnalysis
    from rotor_bem.core.config import RotorSimulationConfig
    from rotor_bem.postprocess.results_logger import PowerCurveLogger, write_aep_table

    config = RotorSimulationConfig.from_yaml(config_path)
    config.validate()
    analysis = RotorAnalysis.from_config(config)

    curve = analysis.power_curve(max_workers=workers)
    aep_results = analysis.annual_energy(curve)
    print_results(curve, aep_results)

    out = config.output
    curve_path = None
    if out.power_curve_file:
        curve_path = output_dir / out.power_curve_file
        writer = PowerCurveLogger(str(curve_path), out.separator, config)
        writer.initialize()
        writer.log_curve(curve)
        writer.close()
        logging.info("Power curve written to %s", curve_path)
    if out.aep_file:
        write_aep_table(str(output_dir / out.aep_file), aep_results, out.separator)

    if plot and curve_path is not None:
        from rotor_bem.postprocess.visualizer import PowerCurveVisualizer

        plot_path = output_dir / (out.plot_file or "power_curve.png")
        PowerCurveVisualizer(str(curve_path), out.separator).plot_power(save_path=str(plot_path))
        logging.info("Power curve plot saved to %s", plot_path)
    return 0


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Compute rotor power curves and AEP from YAML configuration files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s rotor.yaml                     Power curve and AEP
  %(prog)s rotor.yaml --output results    Write CSV files to results/
  %(prog)s rotor.yaml --validate          Validate configuration
  %(prog)s --template > rotor.yaml        Generate template
        """,
    )

    parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML configuration file",
    )

    parser.add_argument(
        "--output",
        "-o",
        default=".",
        help="Output folder for result files",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration file",
    )

    parser.add_argument(
        "--template",
        "-t",
        action="store_true",
        help="Print template configuration to stdout",
    )

    parser.add_argument(
        "--plot",
        "-p",
        action="store_true",
        help="Save a power-curve plot next to the CSV",
    )

    parser.add_argument(
        "--workers",
        "-j",
        type=int,
        default=None,
        help="Threads for the wind-speed sweep",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.template:
        print(TEMPLATE_CONFIG)
        return 0

    if not args.config:
        parser.print_help()
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        return 1

    setup_logging(args.verbose)

    if args.validate:
        return 0 if validate_config(str(config_path)) else 1

    try:
        return run(config_path, Path(args.output), args.plot, args.workers)

    except KeyboardInterrupt:
        print("\nAnalysis interrupted by user")
        return 130

    except ValueError as e:
        logging.error("Invalid configuration: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
