"""
Headless Flappy Bird world driving the genetic algorithm.

Nothing here is drawn: birds and pipes are axis-aligned boxes in screen
coordinates (origin top-left, y grows downwards). Each tick every live bird
looks at the nearest pipe in front of it, asks its genome whether to flap,
and gets its fitness rewritten. Once every bird is dead and has slid off the
left edge, the population is evolved and the world restarts.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from .config import (
    BIRD_HEIGHT,
    BIRD_WIDTH,
    FLAP_VELOCITY,
    GRAVITY,
    GROUND_HEIGHT,
    MAX_FALL_VELOCITY,
    PIPE_GAP,
    PIPE_GAP_MARGIN,
    PIPE_SPACING_MAX,
    PIPE_SPACING_MIN,
    PIPE_WIDTH,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    SCROLL_SPEED,
    TIME_PER_FRAME,
)
from .fitness import compute_fitness, perceive
from .genetic_algorithm import GAHistory, GeneticAlgorithm


class Bird:
    def __init__(self, x: float, y: float):
        self.x = x
        self.y = y
        self.vx = 0.0
        self.vy = 0.0
        self.alive = True
        self.score = 0.0

    @property
    def bottom(self) -> float:
        return self.y + BIRD_HEIGHT

    @property
    def right(self) -> float:
        return self.x + BIRD_WIDTH

    def flap(self) -> None:
        if self.alive:
            self.vy = FLAP_VELOCITY

    def kill(self) -> None:
        if self.alive:
            self.alive = False
            self.vx = -SCROLL_SPEED

    def update(self, dt: float, ground_top: float) -> None:
        if self.alive:
            self.score += dt
        self.vy = min(self.vy + GRAVITY * dt, MAX_FALL_VELOCITY)
        self.x += self.vx * dt
        self.y += self.vy * dt
        if not self.alive and self.bottom > ground_top:
            self.y = ground_top - BIRD_HEIGHT
            self.vy = 0.0

    def has_left_screen(self) -> bool:
        return not self.alive and self.x < 0


@dataclass
class PipePair:
    """Upper and lower pipe sharing one column; ``gap_y`` is the gap center."""
    x: float
    gap_y: float
    width: float = PIPE_WIDTH
    gap: float = PIPE_GAP

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def gap_top(self) -> float:
        return self.gap_y - self.gap / 2.0

    @property
    def gap_bottom(self) -> float:
        return self.gap_y + self.gap / 2.0

    @property
    def gap_center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.gap_y

    def collides(self, bird: Bird) -> bool:
        overlaps_column = bird.right > self.x and bird.x < self.right
        return overlaps_column and (bird.y < self.gap_top or bird.bottom > self.gap_bottom)


class PipeCourse:
    """Endless stream of pipe pairs scrolling left at a constant speed."""

    def __init__(self,
                 rng: np.random.Generator,
                 screen_size: Tuple[float, float] = (SCREEN_WIDTH, SCREEN_HEIGHT),
                 ground_height: float = GROUND_HEIGHT):
        self.rng = rng
        self.width, self.height = screen_size
        self.ground_top = self.height - ground_height
        self.pipes: List[PipePair] = []
        self.restart()

    def _random_gap_y(self) -> float:
        low = PIPE_GAP_MARGIN + PIPE_GAP / 2.0
        high = self.ground_top - PIPE_GAP_MARGIN - PIPE_GAP / 2.0
        return float(self.rng.uniform(low, high))

    def _spawn(self, x: float) -> None:
        self.pipes.append(PipePair(x=x, gap_y=self._random_gap_y()))

    def _fill(self) -> None:
        while self.pipes[-1].x < self.width:
            spacing = float(self.rng.uniform(PIPE_SPACING_MIN, PIPE_SPACING_MAX))
            self._spawn(self.pipes[-1].x + spacing)

    def restart(self) -> None:
        self.pipes = []
        self._spawn(self.width * 0.6)
        self._fill()

    def update(self, dt: float) -> None:
        for pipe in self.pipes:
            pipe.x -= SCROLL_SPEED * dt
        self.pipes = [pipe for pipe in self.pipes if pipe.right >= 0]
        if not self.pipes:
            self._spawn(self.width)
        self._fill()

    def nearest_in_front(self, x: float) -> PipePair:
        """First pipe whose right edge has not been passed at ``x``."""
        for pipe in self.pipes:
            if pipe.right >= x:
                return pipe
        return self.pipes[-1]

    def collides(self, bird: Bird) -> bool:
        return any(pipe.collides(bird) for pipe in self.pipes)


class FlappySimulation:
    """Pairs bird ``i`` with genome ``i`` and evolves when the flock is gone."""

    def __init__(self,
                 ga: GeneticAlgorithm,
                 screen_size: Tuple[float, float] = (SCREEN_WIDTH, SCREEN_HEIGHT),
                 course_rng: Optional[np.random.Generator] = None,
                 time_limit: Optional[float] = None):
        self.ga = ga
        self.screen_size = screen_size
        if course_rng is None:
            # child stream of the seed; the genetic algorithm draws from the root one
            course_seed = np.random.SeedSequence(ga.config.random_seed).spawn(1)[0]
            course_rng = np.random.default_rng(course_seed)
        self.course = PipeCourse(course_rng, screen_size)
        self.time_limit = time_limit
        self.elapsed = 0.0
        self.birds: List[Bird] = []

        if ga.population is None:
            ga.create_population()
        self.restart()

    def restart(self) -> None:
        width, height = self.screen_size
        self.birds = [Bird(width / 4.0, height / 2.0) for _ in range(self.ga.size)]
        self.course.restart()
        self.elapsed = 0.0

    def _control_boundaries(self, bird: Bird) -> None:
        if bird.y < 0:
            bird.kill()
        if bird.bottom > self.course.ground_top:
            bird.kill()
            bird.y = self.course.ground_top - BIRD_HEIGHT
            bird.vy = 0.0

    def _update_controllers(self) -> None:
        for index, bird in enumerate(self.birds):
            if not bird.alive:
                continue
            genome = self.ga.at(index)
            pipe = self.course.nearest_in_front(bird.x)
            seen = perceive((bird.x, bird.y), pipe.gap_center, self.screen_size)
            genome.set_fitness(compute_fitness(bird.score, seen.horizontal, seen.vertical))
            if genome.evaluate(seen.as_input()):
                bird.flap()

    def all_birds_dead(self) -> bool:
        return all(bird.has_left_screen() for bird in self.birds)

    def alive_count(self) -> int:
        return sum(bird.alive for bird in self.birds)

    def tick(self, dt: float = TIME_PER_FRAME) -> bool:
        """Advance the world by ``dt`` seconds; True when a generation ended."""
        self.elapsed += dt
        self.course.update(dt)
        for bird in self.birds:
            bird.update(dt, self.course.ground_top)
            self._control_boundaries(bird)

        self._update_controllers()

        for bird in self.birds:
            if bird.alive and self.course.collides(bird):
                bird.kill()
        if self.time_limit is not None and self.elapsed >= self.time_limit:
            for bird in self.birds:
                bird.kill()

        if self.all_birds_dead():
            logger.debug("Generation {g} over after {t:.2f}s", g=self.ga.generation, t=self.elapsed)
            self.ga.evolve()
            self.restart()
            return True
        return False

    def run(self, generations: int, dt: float = TIME_PER_FRAME) -> GAHistory:
        target = self.ga.generation + generations
        while self.ga.generation < target:
            self.tick(dt)
        return self.ga.history
