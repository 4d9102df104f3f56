"""Sequential VEO3 segment generation for a session.

Each segment goes through submit → fixed-interval poll → download → record.
Segments are generated strictly one after another; the same character seed
is sent for every segment so the presenter stays consistent. The first
failure aborts the run and propagates, leaving already recorded segments in
progress.json so the run can be resumed segment by segment.

Usage:
    generator = SegmentGenerator(kie, session, seed=30001)
    await generator.generate_all(prompts, image_urls)
"""

import structlog

from fantasy_ops.clients.kie import KieClient
from fantasy_ops.services.session import SegmentRecord, Session, record_segment

log = structlog.get_logger(__name__)


class SegmentGenerator:
    """Generate and download the segments of one session.

    Attributes:
        kie: KIE.ai client
        session: Target session (segments are saved in its directory)
    """

    def __init__(
        self,
        kie: KieClient,
        session: Session,
        model: str = "veo3_fast",
        aspect_ratio: str = "9:16",
        seed: int | None = None,
        watermark: str | None = None,
        poll_interval: float = 10,
        max_poll_attempts: int = 30,
    ):
        self.kie = kie
        self.session = session
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.seed = seed
        self.watermark = watermark
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.log = log.bind(session_id=session.session_id)

    async def generate_segment(
        self,
        index: int,
        prompt: str,
        image_url: str | None = None,
        dialogue: str = "",
    ) -> SegmentRecord:
        """Generate one segment and record it in progress.json.

        Args:
            index: 0-based segment index
            prompt: VEO3 prompt for this segment
            image_url: Optional reference image (image-to-video)
            dialogue: Spoken line stored with the record

        Returns:
            The saved SegmentRecord

        Raises:
            GenerationFailedError: If VEO3 reports failure
            GenerationTimeoutError: If polling hits its ceiling
            ExternalServiceError: If submission is rejected
        """
        self.log.info("segment_generation_started", index=index)
        task_id = await self.kie.generate_video(
            prompt,
            image_urls=[image_url] if image_url else None,
            model=self.model,
            aspect_ratio=self.aspect_ratio,
            seed=self.seed,
            watermark=self.watermark,
        )
        video_url = await self.kie.wait_for_video(task_id, self.poll_interval, self.max_poll_attempts)

        filename = self.session.segment_filename(index)
        await self.kie.download(video_url, self.session.directory / filename)

        record = SegmentRecord(index=index, task_id=task_id, filename=filename, dialogue=dialogue)
        record_segment(self.session, record)
        self.log.info("segment_generation_completed", index=index, task_id=task_id, filename=filename)
        return record

    async def generate_all(
        self,
        prompts: list[str],
        image_urls: list[str | None] | None = None,
        dialogues: list[str] | None = None,
        skip_existing: bool = False,
    ) -> list[SegmentRecord]:
        """Generate every segment in order; the first failure aborts the run.

        With skip_existing, segments already recorded in progress (and still on
        disk) are kept as they are, so an aborted run can be resumed.

        Raises:
            ValueError: If image_urls or dialogues do not match prompts in length
        """
        if image_urls is not None and len(image_urls) != len(prompts):
            raise ValueError("image_urls must have one entry per prompt")
        if dialogues is not None and len(dialogues) != len(prompts):
            raise ValueError("dialogues must have one entry per prompt")

        if self.session.progress.segments_total < len(prompts):
            self.session.progress.segments_total = len(prompts)

        records = []
        for index, prompt in enumerate(prompts):
            existing = self.session.progress.get_segment(index) if skip_existing else None
            if existing is not None and (self.session.directory / existing.filename).exists():
                self.log.info("segment_generation_skipped", index=index, filename=existing.filename)
                records.append(existing)
                continue
            image_url = image_urls[index] if image_urls else None
            dialogue = dialogues[index] if dialogues else ""
            records.append(await self.generate_segment(index, prompt, image_url, dialogue))
        return records
