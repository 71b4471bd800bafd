"""Package the brain memory graph (src layout, bundled bootstrap locales)."""

from setuptools import find_packages, setup


def get_version() -> str:
    with open("src/brain/__init__.py", encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=", 1)[1].strip().strip('"')
    return "0.0.0"


setup(
    name="ai-brain",
    version=get_version(),
    description="Memory graph MCP server with emotional metadata: trust, resonance, decay",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages("src"),
    package_data={"brain": ["locales/*.md"]},
    install_requires=["click>=8.1"],
    extras_require={"test": ["pytest>=8"]},
    entry_points={"console_scripts": ["brain=brain.cli:cli"]},
)
