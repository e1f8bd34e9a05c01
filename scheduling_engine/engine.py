"""Scheduling engine: one object owning the store, active model and learner."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from scheduling_engine.circadian import build_intelligence, learn_energy_profile
from scheduling_engine.clock import Clock, SystemClock
from scheduling_engine.config import EngineConfig
from scheduling_engine.learning import AdaptiveLearner, CycleResult, ModelAdaptation
from scheduling_engine.notifier import LoggingNotifier, Notifier
from scheduling_engine.persistence import (
    CURRENT_MODEL_KEY,
    DATA_SHARING_KEY,
    INTELLIGENCE_KEY,
    ModelSelector,
    SafeSettings,
    SettingsModelSelector,
    SettingsStore,
)
from scheduling_engine.reports import ReportProvider
from scheduling_engine.scheduling import next_recommended_action
from scheduling_engine.schema import (
    AdaptationRule,
    Complexity,
    DataSharingPreferences,
    EisenhowerQuadrant,
    EnergyBasedModel,
    EnergyLevel,
    EnergyReading,
    Recommendation,
    SchedulingIntelligence,
    SchedulingModel,
    model_from_dict,
)
from scheduling_engine.store import TaskEnergyStore

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """Serves recommendations and runs learning cycles.

    Construct one per user and hand it to whatever drives the hourly cycle.
    Recommendation calls never touch the settings store; only the learning
    cycle rewrites intelligence, adaptation records and the active model id.
    """

    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        model_selector: Optional[ModelSelector] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.clock = clock or SystemClock()
        self.settings = SafeSettings(settings_store)
        self.notifier = notifier or LoggingNotifier()
        self.model_selector = model_selector or SettingsModelSelector(self.settings)
        self.store = TaskEnergyStore(self.settings, now=self.clock.now, retention_days=self.config.reading_retention_days)
        self.learner = AdaptiveLearner(self.settings, self.model_selector, self.notifier, self.clock, self.config)

        self.current_model: Optional[SchedulingModel] = self._load(CURRENT_MODEL_KEY, model_from_dict)
        self.intelligence: Optional[SchedulingIntelligence] = self._load(
            INTELLIGENCE_KEY, SchedulingIntelligence.from_dict
        )
        self.data_sharing: DataSharingPreferences = (
            self._load(DATA_SHARING_KEY, DataSharingPreferences.from_dict) or DataSharingPreferences()
        )
        self._cycle_lock = threading.Lock()

    def _load(self, key: str, parse):
        raw = self.settings.load(key, None)
        if raw is None:
            return None
        try:
            return parse(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed %s setting", key, exc_info=True)
            return None

    # Models

    def set_scheduling_model(self, model: Optional[SchedulingModel]) -> None:
        self.current_model = model
        self.settings.save(CURRENT_MODEL_KEY, model.to_dict() if model is not None else None)
        logger.info("Scheduling model set to %s", model.id if model is not None else None)

    def get_next_recommended_action(self, now: Optional[datetime] = None) -> Recommendation:
        return next_recommended_action(
            self.current_model,
            tasks=self.store.tasks,
            intelligence=self.intelligence,
            rules=self.store.rules,
            readings=self.store.readings,
            now=now or self.clock.now(),
        )

    # Tasks and readings

    def add_task(
        self,
        name: str,
        priority: EisenhowerQuadrant,
        complexity: Complexity,
        energy_required: EnergyLevel,
        estimated_duration: int,
        deadline: Optional[datetime] = None,
    ) -> str:
        return self.store.add_task(name, priority, complexity, energy_required, estimated_duration, deadline)

    def complete_task(
        self, task_id: str, actual_duration: Optional[int] = None, satisfaction: Optional[int] = None
    ) -> bool:
        return self.store.complete_task(task_id, actual_duration, satisfaction)

    def record_energy_reading(
        self, energy_level: float, completion_rate: float, timestamp: Optional[datetime] = None
    ) -> EnergyReading:
        reading = self.store.record_energy_reading(energy_level, completion_rate, timestamp)
        model = self.current_model
        if isinstance(model, EnergyBasedModel) and model.energy_profile is not None:
            learn_energy_profile(model.energy_profile, self.store.readings)
            self.settings.save(CURRENT_MODEL_KEY, model.to_dict())
        return reading

    def add_adaptation_rule(self, rule: AdaptationRule) -> None:
        self.store.add_adaptation_rule(rule)

    def adaptation_rules(self) -> list[AdaptationRule]:
        return self.store.adaptation_rules()

    # Data sharing

    def set_data_sharing_preferences(self, preferences: DataSharingPreferences) -> None:
        self.data_sharing = preferences
        self.settings.save(DATA_SHARING_KEY, preferences.to_dict())

    def get_data_sharing_preferences(self) -> DataSharingPreferences:
        return self.data_sharing

    # Learning

    def rebuild_intelligence(self) -> Optional[SchedulingIntelligence]:
        """Rebuild from stored readings; keeps the previous copy while data is sparse."""

        intelligence = build_intelligence(
            self.store.readings,
            self.store.tasks,
            self.clock.now(),
            min_readings=self.config.min_readings_for_intelligence,
        )
        if intelligence is None:
            return None
        self.intelligence = intelligence
        self.settings.save(INTELLIGENCE_KEY, intelligence.to_dict())
        return intelligence

    def run_learning_cycle(self, provider: ReportProvider) -> Optional[CycleResult]:
        """Run one learning cycle. Returns None when another cycle is in flight."""

        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Learning cycle already running; skipping")
            return None
        try:
            try:
                self.rebuild_intelligence()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to rebuild scheduling intelligence")

            try:
                report = provider.performance_report()
                insights = provider.contextual_insights()
            except Exception:  # noqa: BLE001
                logger.exception("Analytics reports unavailable; skipping adaptation")
                return CycleResult()

            return self.learner.run_cycle(report, insights, self.store.tasks)
        finally:
            self._cycle_lock.release()

    @property
    def adaptations(self) -> list[ModelAdaptation]:
        return list(self.learner.adaptations.values())

    def scheduling_stats(self) -> dict:
        stats = self.store.scheduling_stats()
        stats["energy_insights"] = list(self.intelligence.energy_patterns) if self.intelligence else []
        return stats

    def dispose(self) -> None:
        self.learner.persist()


class LearningLoopRunner:
    """Fires the learning cycle every `interval` of clock time.

    `tick()` is the injectable heartbeat: tests call it against a
    `ManualClock`, `start()` calls it from a background thread.
    """

    def __init__(
        self,
        engine: SchedulingEngine,
        provider: ReportProvider,
        clock: Optional[Clock] = None,
        interval: Optional[timedelta] = None,
    ) -> None:
        self.engine = engine
        self.provider = provider
        self.clock = clock or engine.clock
        self.interval = interval or timedelta(minutes=engine.config.cycle_interval_minutes)
        self.paused = not engine.config.learning_enabled
        self.next_run = self.clock.now() + self.interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> Optional[CycleResult]:
        now = self.clock.now()
        if self.paused or now < self.next_run:
            return None
        self.next_run = now + self.interval
        return self.engine.run_learning_cycle(self.provider)

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        if self.paused:
            self.paused = False
            self.next_run = self.clock.now() + self.interval

    def start(self, poll_seconds: float = 60.0) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()

        def _loop() -> None:
            while not self._stop.wait(poll_seconds):
                self.tick()

        self._thread = threading.Thread(target=_loop, name="learning-loop", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.engine.dispose()
