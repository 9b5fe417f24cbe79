from setuptools import find_packages, setup

setup(
    name="rotor-bem",
    version="0.1.0",
    description="Steady blade-element momentum analysis of wind turbine rotors",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "pyyaml",
        "matplotlib",
        "polars",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "rotor-bem=rotor_bem.cli.run_bem:main",
        ],
    },
)
