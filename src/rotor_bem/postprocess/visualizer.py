from typing import Optional

import matplotlib.pyplot as plt
import polars as pl


class PowerCurveVisualizer:
    def __init__(self, file_path: str, separator: str = ","):
        """
        Load a power-curve CSV written by ``PowerCurveLogger``.

        Args:
            file_path (str): Path to the power-curve file
            separator (str): Column separator
        """
        self.df = pl.read_csv(
            file_path, separator=separator, has_header=True, comment_prefix="#"
        ).sort("wind_speed")

    @property
    def converged(self) -> pl.DataFrame:
        """Rows whose outer loop converged."""
        return self.df.filter(pl.col("converged") == 1)

    def _finish(self, save_path: Optional[str]):
        plt.grid(True, linestyle="--", alpha=0.7)
        plt.legend()
        if save_path:
            plt.savefig(save_path, dpi=300, bbox_inches="tight")
            plt.close()
        else:
            plt.show()

    def plot_power(self, save_path: Optional[str] = None):
        """
        Plot aerodynamic and electrical power over wind speed.

        Args:
            save_path (str, optional): Output image; shows the figure if None.
        """
        plt.figure(figsize=(10, 6))
        plt.plot(self.df["wind_speed"], self.df["aero_power_kW"], label="Aerodynamic", linewidth=2)
        plt.plot(
            self.df["wind_speed"], self.df["electrical_power_kW"], label="Electrical", linewidth=2
        )
        failed = self.df.filter(pl.col("converged") == 0)
        if failed.height:
            plt.scatter(
                failed["wind_speed"],
                failed["electrical_power_kW"],
                color="red",
                marker="x",
                label="Not converged",
            )
        plt.title("Power curve")
        plt.xlabel("Wind speed [m/s]")
        plt.ylabel("Power [kW]")
        self._finish(save_path)

    def plot_coefficients(self, save_path: Optional[str] = None):
        """
        Plot Cp and Ct over wind speed.

        Args:
            save_path (str, optional): Output image; shows the figure if None.
        """
        plt.figure(figsize=(10, 6))
        plt.plot(self.df["wind_speed"], self.df["Cp"], label="Cp", linewidth=2)
        plt.plot(self.df["wind_speed"], self.df["Ct"], label="Ct", linewidth=2)
        plt.title("Rotor coefficients")
        plt.xlabel("Wind speed [m/s]")
        plt.ylabel("Coefficient [-]")
        self._finish(save_path)

    def plot_operation(self, save_path: Optional[str] = None):
        """
        Plot rotor speed and pitch over wind speed on twin axes.

        Args:
            save_path (str, optional): Output image; shows the figure if None.
        """
        fig, ax_speed = plt.subplots(figsize=(10, 6))
        ax_pitch = ax_speed.twinx()
        ax_speed.plot(
            self.df["wind_speed"], self.df["rotor_speed_rpm"], color="tab:blue", linewidth=2
        )
        ax_pitch.plot(self.df["wind_speed"], self.df["pitch_deg"], color="tab:orange", linewidth=2)
        ax_speed.set_xlabel("Wind speed [m/s]")
        ax_speed.set_ylabel("Rotor speed [rpm]", color="tab:blue")
        ax_pitch.set_ylabel("Pitch [deg]", color="tab:orange")
        ax_speed.grid(True, linestyle="--", alpha=0.7)
        ax_speed.set_title("Operating schedule")
        if save_path:
            fig.savefig(save_path, dpi=300, bbox_inches="tight")
            plt.close(fig)
        else:
            plt.show()

    def summary(self) -> dict:
        """Headline numbers of the curve."""
        return {
            "points": self.df.height,
            "not_converged": self.df.height - self.converged.height,
            "max_cp": float(self.df["Cp"].max()),
            "max_electrical_power_kW": float(self.df["electrical_power_kW"].max()),
        }
