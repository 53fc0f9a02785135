from setuptools import find_packages, setup

setup(
    name="fem-elastic",
    version="0.1.0",
    description="Elastic energy and nodal forces of 3D solid finite elements",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
