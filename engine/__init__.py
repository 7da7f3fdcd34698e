"""
Engine Layer - 纯游戏逻辑 (不做任何 I/O)

Modules:
    cards: 牌定义、大小顺序与编码
    melds: 牌型定义
    rules: 规则引擎 (识别、牌力、比较)
    moves: 合法出牌生成
    state: 出牌轮次 / 局 状态机
    config: 游戏配置
"""
from .cards import (
    Card,
    DeckIntegrityError,
    DISTINGUISHED_CARD,
    STARTER_CARD,
    SMALL_JOKER,
    BIG_JOKER,
    parse_card,
    str_to_cards,
    cards_to_str,
    cards_to_array,
    single_rank_value,
    run_rank_value,
    build_deck,
    deal,
    validate_deal,
)

from .melds import (
    MeldType,
    Meld,
    BOMB_TYPES,
    MIN_RUN_LEN,
    MIN_SISTERS_LEN,
)

from .rules import RuleEngine

from .moves import MoveGenerator

from .config import GameConfig

from .state import (
    Phase,
    PlayAction,
    PlayOutcome,
    TrickState,
    LastPlay,
    PlayRecord,
    PlayResult,
    RoundResult,
    Player,
    PlayerView,
    GameSnapshot,
    GameState,
)

__all__ = [
    # cards
    "Card",
    "DeckIntegrityError",
    "DISTINGUISHED_CARD",
    "STARTER_CARD",
    "SMALL_JOKER",
    "BIG_JOKER",
    "parse_card",
    "str_to_cards",
    "cards_to_str",
    "cards_to_array",
    "single_rank_value",
    "run_rank_value",
    "build_deck",
    "deal",
    "validate_deal",
    # melds
    "MeldType",
    "Meld",
    "BOMB_TYPES",
    "MIN_RUN_LEN",
    "MIN_SISTERS_LEN",
    # rules
    "RuleEngine",
    # moves
    "MoveGenerator",
    # config
    "GameConfig",
    # state
    "Phase",
    "PlayAction",
    "PlayOutcome",
    "TrickState",
    "LastPlay",
    "PlayRecord",
    "PlayResult",
    "RoundResult",
    "Player",
    "PlayerView",
    "GameSnapshot",
    "GameState",
]
