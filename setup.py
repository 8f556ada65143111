from setuptools import setup, find_packages

setup(
    name="manuscript",
    version="0.1.0",
    description="Long-session audio recorder with pause/resume and streaming WAV output",
    author="",
    python_requires=">=3.8",
    packages=find_packages(include=["manuscript", "manuscript.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "manuscript=manuscript.main:main",
        ],
    },
)
