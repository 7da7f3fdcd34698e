"""
游戏配置

启动时构造一次，显式传入状态机与机器人，不使用全局可变配置
"""
from dataclasses import dataclass, replace, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import json

from .cards import deck_count_for


MIN_PLAYERS = 2
MAX_PLAYERS = 6
MIN_ROUNDS_TO_WIN = 1
MAX_ROUNDS_TO_WIN = 100

# 机器人难度 (None 表示由外部输入控制的座位)
VALID_TIERS = ("beginner", "intermediate", "advanced")

DEFAULT_NAMES = ("You", "Alice", "Bob", "Cat", "Dave", "Eve")


@dataclass(frozen=True)
class GameConfig:
    """
    游戏配置

    Attributes:
        player_count: 玩家人数 (2-6，6 人使用两副牌)
        rounds_to_win: 先赢够多少局结束整场比赛
        seat_tiers: 每个座位的机器人难度，None 表示外部玩家
        player_names: 每个座位的名字
        seed: 随机种子 (发牌与机器人共用)
    """
    player_count: int = 4
    rounds_to_win: int = 10
    seat_tiers: Tuple[Optional[str], ...] = (None, "intermediate", "intermediate", "advanced")
    player_names: Tuple[str, ...] = DEFAULT_NAMES[:4]
    seed: Optional[int] = None

    @property
    def deck_count(self) -> int:
        return deck_count_for(self.player_count)

    def player_ids(self) -> List[str]:
        """座位 id，与名字对应 (小写)"""
        return [name.lower() for name in self.names()]

    def names(self) -> List[str]:
        names = list(self.player_names[:self.player_count])
        for i in range(len(names), self.player_count):
            names.append(DEFAULT_NAMES[i] if i < len(DEFAULT_NAMES) else f"Player{i + 1}")
        return names

    def tiers(self) -> List[Optional[str]]:
        tiers = list(self.seat_tiers[:self.player_count])
        tiers.extend([None] * (self.player_count - len(tiers)))
        return tiers

    def validate(self) -> List[str]:
        """
        检查配置

        Returns:
            错误信息列表，为空表示配置合法
        """
        errors = []

        if not MIN_PLAYERS <= self.player_count <= MAX_PLAYERS:
            errors.append(f"Player count must be between {MIN_PLAYERS} and {MAX_PLAYERS}")

        if not MIN_ROUNDS_TO_WIN <= self.rounds_to_win <= MAX_ROUNDS_TO_WIN:
            errors.append(
                f"Rounds to win must be between {MIN_ROUNDS_TO_WIN} and {MAX_ROUNDS_TO_WIN}"
            )

        for tier in self.seat_tiers:
            if tier is not None and tier not in VALID_TIERS:
                errors.append(f"Invalid bot difficulty: {tier}")

        ids = self.player_ids()
        if len(set(ids)) != len(ids):
            errors.append("Player names must be unique")

        return errors

    @classmethod
    def from_dict(cls, d: Dict[str, Any], strict: bool = False) -> 'GameConfig':
        """
        从字典创建配置 (忽略未知字段)

        Args:
            d: 配置字典
            strict: 为 True 时校验失败抛出 ValueError

        Returns:
            GameConfig
        """
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        for key in ("seat_tiers", "player_names"):
            if key in filtered:
                filtered[key] = tuple(filtered[key])
        config = cls(**filtered)
        if strict:
            errors = config.validate()
            if errors:
                raise ValueError("; ".join(errors))
        return config

    @classmethod
    def from_json(cls, path: Union[str, Path], strict: bool = True) -> 'GameConfig':
        """从 JSON 文件加载配置"""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f), strict=strict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["seat_tiers"] = list(self.seat_tiers)
        d["player_names"] = list(self.player_names)
        return d

    # ------------------------------------------------------------------
    # 预设
    # ------------------------------------------------------------------

    @classmethod
    def speed(cls) -> 'GameConfig':
        """快速局"""
        return cls(rounds_to_win=3)

    @classmethod
    def tournament(cls) -> 'GameConfig':
        """锦标赛: 全部高级机器人"""
        return cls(rounds_to_win=15, seat_tiers=(None, "advanced", "advanced", "advanced"))

    @classmethod
    def beginner(cls) -> 'GameConfig':
        """新手局"""
        return cls(rounds_to_win=5, seat_tiers=(None, "beginner", "beginner", "intermediate"))

    @classmethod
    def all_bots(cls, tiers: Tuple[str, ...], **kwargs) -> 'GameConfig':
        """所有座位都由机器人控制"""
        return cls(
            player_count=len(tiers),
            seat_tiers=tuple(tiers),
            player_names=tuple(f"{tier.capitalize()}{i + 1}" for i, tier in enumerate(tiers)),
            **kwargs,
        )

    def with_seed(self, seed: Optional[int]) -> 'GameConfig':
        return replace(self, seed=seed)
