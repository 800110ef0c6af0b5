"""Human-like pointer movement with Bezier curves."""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import dataclass
from typing import Any


@dataclass
class Point:
    """2D coordinate point."""

    x: float
    y: float


class HumanCursor:
    """Move and click the mouse along curved, slightly shaky paths.

    Features:
    - Cubic Bezier trajectories with randomised control points
    - Ease-in-out timing between steps
    - Tremor away from the endpoints
    - Occasional overshoot followed by a correction
    """

    def __init__(
        self,
        *,
        min_steps: int = 20,
        max_steps: int = 50,
        overshoot_probability: float = 0.15,
        tremor_amplitude: float = 1.5,
        base_delay_ms: float = 5.0,
    ) -> None:
        self.min_steps = min_steps
        self.max_steps = max_steps
        self.overshoot_probability = overshoot_probability
        self.tremor_amplitude = tremor_amplitude
        self.base_delay_ms = base_delay_ms
        self.position = Point(400, 300)

    def _bezier_curve(
        self,
        start: Point,
        end: Point,
        control1: Point,
        control2: Point,
        t: float,
    ) -> Point:
        """Calculate point on cubic Bezier curve."""
        u = 1 - t
        return Point(
            x=(u**3) * start.x
            + 3 * (u**2) * t * control1.x
            + 3 * u * (t**2) * control2.x
            + (t**3) * end.x,
            y=(u**3) * start.y
            + 3 * (u**2) * t * control1.y
            + 3 * u * (t**2) * control2.y
            + (t**3) * end.y,
        )

    def _control_points(self, start: Point, end: Point) -> tuple[Point, Point]:
        distance = math.dist((start.x, start.y), (end.x, end.y))
        deviation = min(distance * 0.3, 100)

        c1 = Point(
            x=start.x + (end.x - start.x) * 0.25 + random.uniform(-deviation, deviation),
            y=start.y + (end.y - start.y) * 0.25 + random.uniform(-deviation, deviation),
        )
        c2 = Point(
            x=start.x + (end.x - start.x) * 0.75 + random.uniform(-deviation, deviation),
            y=start.y + (end.y - start.y) * 0.75 + random.uniform(-deviation, deviation),
        )
        return c1, c2

    def _delay(self, progress: float, distance: float) -> float:
        """Milliseconds to wait before the next step."""
        # Speed follows a parabola peaking mid-path
        speed = 1 - 4 * (progress - 0.5) ** 2
        distance_factor = max(0.5, min(2.0, 500 / max(distance, 1)))
        delay = self.base_delay_ms * (0.5 + speed) * distance_factor
        return max(1, delay + random.uniform(-2, 2))

    def generate_path(self, start: Point, end: Point) -> list[Point]:
        """Generate a human-like path that ends exactly on ``end``."""
        distance = math.dist((start.x, start.y), (end.x, end.y))
        num_steps = int(self.min_steps + (self.max_steps - self.min_steps) * min(distance / 1000, 1))
        c1, c2 = self._control_points(start, end)

        path = []
        for i in range(num_steps + 1):
            t = i / num_steps
            point = self._bezier_curve(start, end, c1, c2, t)
            # Less tremor near the endpoints
            if 0 < t < 1 and 1 - abs(2 * t - 1) > 0.2:
                point = Point(
                    x=point.x + random.gauss(0, self.tremor_amplitude),
                    y=point.y + random.gauss(0, self.tremor_amplitude),
                )
            path.append(point)

        if distance > 0 and random.random() < self.overshoot_probability:
            amount = random.uniform(5, 20)
            overshoot = Point(
                x=end.x + (end.x - start.x) / distance * amount,
                y=end.y + (end.y - start.y) / distance * amount,
            )
            path.append(overshoot)
            steps = random.randint(3, 7)
            for i in range(1, steps + 1):
                t = i / steps
                path.append(
                    Point(
                        x=overshoot.x + (end.x - overshoot.x) * t,
                        y=overshoot.y + (end.y - overshoot.y) * t,
                    )
                )

        return path

    async def move_to(self, page: Any, x: float, y: float) -> None:
        """Move the mouse to ``(x, y)`` along a generated path."""
        start, end = self.position, Point(x, y)
        path = self.generate_path(start, end)
        distance = math.dist((start.x, start.y), (end.x, end.y))

        for i, point in enumerate(path):
            await page.mouse.move(point.x, point.y)
            self.position = point
            await asyncio.sleep(self._delay(i / max(len(path) - 1, 1), distance) / 1000)

        self.position = end

    async def click(self, page: Any, x: float, y: float) -> None:
        """Move to ``(x, y)`` and click with a short random hold."""
        await self.move_to(page, x, y)
        await asyncio.sleep(random.uniform(0.05, 0.15))
        await page.mouse.down()
        await asyncio.sleep(random.uniform(0.05, 0.12))
        await page.mouse.up()

    async def click_element(self, page: Any, element: Any) -> bool:
        """Click somewhere inside an element's box; False if it has no box."""
        box = await element.bounding_box()
        if not box:
            return False

        x = box["x"] + box["width"] * random.uniform(0.3, 0.7)
        y = box["y"] + box["height"] * random.uniform(0.3, 0.7)
        await self.click(page, x, y)
        return True
