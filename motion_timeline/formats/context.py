import configparser
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from motion_timeline.engine.derivatives import DerivativeAlgorithm, DerivativeParams
from motion_timeline.ir.clip import ClipWindow
from motion_timeline.util.pydantic_util import ParentModel
from motion_timeline.util.timing import FrameTime, uniform_frame_time

logger = logging.getLogger(__name__)


class TimelineContext(ParentModel):
    """
    Clip and derivative settings of a recording.

    Can be loaded from a YAML file::

        frame_rate: 30
        start_frame: 12
        stride: 2
        step_count: 40
        derivatives:
          spill: 2
          algorithm: bounce_detect

    or from a MOT style seqinfo.ini (see :meth:`from_seqinfo_string`).
    """

    frame_rate: float = 30.0
    start_time: float = 0.0
    """Time of frame 0, in seconds"""
    start_frame: int = 0
    stride: int = 1
    step_count: Optional[int] = None
    seq_length: Optional[int] = None
    """Number of recorded frames. Used for the step count if it isn't set."""
    play_all_steps: bool = False
    derivatives: DerivativeParams = DerivativeParams()

    def clip_window(self) -> ClipWindow:
        step_count = self.step_count
        if step_count is None:
            if self.seq_length:
                step_count = 1 + (self.seq_length - 1 - self.start_frame) // self.stride
            else:
                raise ValueError("Neither step_count nor seq_length is set, cannot build the clip window")
        last_frame = self.seq_length - 1 if self.seq_length else None
        return ClipWindow(
            start_frame=self.start_frame,
            stride=self.stride,
            step_count=step_count,
            play_all_steps=self.play_all_steps,
            last_frame=last_frame,
        )

    def frame_time(self) -> FrameTime:
        return uniform_frame_time(self.frame_rate, self.start_time)

    @staticmethod
    def from_yaml_file(file_path: Union[str, Path]) -> "TimelineContext":
        file_path = Path(file_path)
        with open(file_path) as f:
            ctx = TimelineContext._from_yaml_dict(yaml.safe_load(f), str(file_path))
        logger.debug(f"Loaded timeline context from {file_path}")
        return ctx

    @staticmethod
    def from_yaml_string(content: str) -> "TimelineContext":
        return TimelineContext._from_yaml_dict(yaml.safe_load(content), "<string>")

    @staticmethod
    def _from_yaml_dict(meta_dict: Any, source: str) -> "TimelineContext":
        if meta_dict is None:
            return TimelineContext()
        if not isinstance(meta_dict, dict):
            raise ValueError(f"Expected a mapping at the top level of {source}, got {type(meta_dict).__name__}")
        return TimelineContext.model_validate(meta_dict)

    def to_yaml_string(self) -> str:
        yaml_structure: Dict[str, Any] = self.model_dump(mode="json", exclude_none=True)
        return yaml.dump(yaml_structure)

    @staticmethod
    def from_seqinfo_string(content: str) -> "TimelineContext":
        """
        Load context from seqinfo.ini file's content.

        Example seqinfo.ini::

            [Sequence]
            name=test_sequence
            frameRate=30
            seqLength=100
            startFrame=0
            stride=2

            [Derivatives]
            spill=2
            accelerationSpill=2
            algorithm=bounce_detect
        """

        config = configparser.ConfigParser()
        config.read_string(content)
        ctx = TimelineContext()
        if config.has_section("Sequence"):
            seq = config["Sequence"]
            ctx.frame_rate = float(seq.get("frameRate", "30.0"))
            ctx.seq_length = int(seq.get("seqLength", "0")) or None
            ctx.start_frame = int(seq.get("startFrame", "0"))
            ctx.stride = int(seq.get("stride", "1"))
            ctx.step_count = int(seq.get("stepCount", "0")) or None
        if config.has_section("Derivatives"):
            section = config["Derivatives"]
            ctx.derivatives = DerivativeParams(
                spill=int(section.get("spill", "1")),
                acceleration_spill=int(section.get("accelerationSpill", "2")),
                algorithm=DerivativeAlgorithm(section.get("algorithm", DerivativeAlgorithm.FINITE_DIFF.value)),
                bounce_sharpness=float(section.get("bounceSharpness", "2.0")),
            )
        return ctx
