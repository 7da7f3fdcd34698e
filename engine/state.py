"""
游戏状态与状态机

- TrickState / GameSnapshot 等对外暴露的数据都是不可变的
- GameState 独占回合、出牌轮次与手牌的修改
- play / pass_turn 先完整校验再修改，要么全部生效要么全部拒绝
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple
from enum import Enum
import logging

import numpy as np

from .cards import (
    Card,
    STARTER_CARD,
    build_deck,
    deal,
    deck_count_for,
    shuffle_deck,
    sort_by_single_rank,
    validate_deal,
)
from .config import GameConfig
from .melds import Meld, MeldType
from .moves import MoveGenerator
from .rules import RuleEngine

logger = logging.getLogger(__name__)


class Phase(Enum):
    """游戏阶段"""
    WAITING = "waiting"          # 尚未发牌
    LEAD_OPEN = "lead_open"      # 领出者可以出任意牌型
    FOLLOW_OPEN = "follow_open"  # 已确定牌型，跟牌或炸
    ROUND_OVER = "round_over"    # 本局结束


class PlayAction(Enum):
    PLAY = "play"
    PASS = "pass"


class PlayOutcome(Enum):
    """出牌/过牌的处理结果"""
    ACCEPTED = "accepted"
    NOT_YOUR_TURN = "not_your_turn"
    NO_ACTIVE_ROUND = "no_active_round"
    HAND_MISMATCH = "hand_mismatch"      # 手里没有这些牌
    ILLEGAL_PLAY = "illegal_play"        # 不是合法出牌
    LEAD_REQUIRED = "lead_required"      # 领出者不能过


@dataclass(frozen=True)
class LastPlay:
    """桌面上最后一手牌"""
    player_id: str
    meld: Meld


@dataclass(frozen=True)
class TrickState:
    """
    一轮出牌的状态

    Attributes:
        leader: 本轮领出者
        established_type: 本轮确定的牌型 (尚未出牌为 None)
        last_play: 最后一手牌
        pass_count: 自最后一手牌以来连续过牌次数
    """
    leader: str
    established_type: Optional[MeldType] = None
    last_play: Optional[LastPlay] = None
    pass_count: int = 0

    @property
    def is_open(self) -> bool:
        """是否还没有人出牌"""
        return self.last_play is None

    def with_play(self, player_id: str, meld: Meld) -> 'TrickState':
        return replace(
            self,
            established_type=self.established_type or meld.meld_type,
            last_play=LastPlay(player_id, meld),
            pass_count=0,
        )

    def with_pass(self) -> 'TrickState':
        return replace(self, pass_count=self.pass_count + 1)


@dataclass(frozen=True)
class PlayRecord:
    """出牌历史条目"""
    player_id: str
    action: PlayAction
    meld: Optional[Meld] = None


@dataclass(frozen=True)
class RoundResult:
    """一局的结果"""
    round_number: int
    winner: str
    losers: Tuple[str, ...]


@dataclass(frozen=True)
class PlayResult:
    """
    play / pass_turn 的返回值

    Attributes:
        outcome: 处理结果
        player_id: 行动玩家
        meld: 打出的牌 (过牌为 None)
        trick_resolved: 本次过牌是否结束了这一轮
        round_result: 本次出牌是否结束了这一局
    """
    outcome: PlayOutcome
    player_id: str
    meld: Optional[Meld] = None
    trick_resolved: bool = False
    round_result: Optional[RoundResult] = None

    @property
    def accepted(self) -> bool:
        return self.outcome == PlayOutcome.ACCEPTED


class Player:
    """
    玩家

    手牌只能由 GameState 在发牌和出牌时修改
    """

    def __init__(self, player_id: str, name: str, is_bot: bool = False):
        self.id = player_id
        self.name = name
        self.is_bot = is_bot
        self.hand: List[Card] = []
        self.wins = 0
        self.losses = 0

    def add_cards(self, cards: Sequence[Card]) -> None:
        self.hand = sort_by_single_rank(self.hand + list(cards))

    def remove_cards(self, cards: Sequence[Card]) -> None:
        for card in cards:
            self.hand.remove(card)

    def clear_hand(self) -> None:
        self.hand = []

    def has_card(self, notation: str) -> bool:
        return any(c.notation == notation for c in self.hand)

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    @property
    def win_rate(self) -> float:
        total = self.wins + self.losses
        return 0.0 if total == 0 else self.wins / total

    def __repr__(self) -> str:
        return f"Player({self.id!r}, cards={len(self.hand)}, wins={self.wins}, losses={self.losses})"


@dataclass(frozen=True)
class PlayerView:
    """玩家的只读视图"""
    id: str
    name: str
    is_bot: bool
    hand: Tuple[Card, ...]
    wins: int
    losses: int

    @property
    def card_count(self) -> int:
        return len(self.hand)


@dataclass(frozen=True)
class GameSnapshot:
    """
    只读的游戏快照 (供渲染和机器人使用)

    每次状态变化 version 加一
    """
    version: int
    round_number: int
    phase: Phase
    players: Tuple[PlayerView, ...]
    current_player: Optional[str]
    trick: Optional[TrickState]
    history: Tuple[PlayRecord, ...] = ()
    last_round_result: Optional[RoundResult] = None

    def player(self, player_id: str) -> PlayerView:
        for p in self.players:
            if p.id == player_id:
                return p
        raise KeyError(player_id)

    def is_leading(self, player_id: str) -> bool:
        """是否轮到该玩家领出 (本轮还没有人出牌)"""
        return (
            self.trick is not None
            and self.trick.is_open
            and self.trick.leader == player_id
        )

    def is_trick_leader(self, player_id: str) -> bool:
        """是否为本轮领出者 (出牌轮回到领出者时仍为 True)"""
        return self.trick is not None and self.trick.leader == player_id

    def opponent_card_counts(self, player_id: str) -> List[int]:
        return [p.card_count for p in self.players if p.id != player_id]


class GameState:
    """
    红心五状态机

    LEAD_OPEN --play--> FOLLOW_OPEN --(其余玩家都过)--> LEAD_OPEN (新领出者)
    任意玩家出完手牌 --> ROUND_OVER --start_round--> LEAD_OPEN
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        players: Optional[Sequence[Player]] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            config: 游戏配置
            players: 玩家列表 (默认按配置创建)
            rng: 随机数生成器 (默认使用配置中的种子)
        """
        self.config = config or GameConfig()
        if players is None:
            players = [
                Player(pid, name, is_bot=tier is not None)
                for pid, name, tier in zip(
                    self.config.player_ids(), self.config.names(), self.config.tiers()
                )
            ]
        self.players: List[Player] = list(players)
        if not 2 <= len(self.players) <= 6:
            raise ValueError(f"Unsupported player count: {len(self.players)}")

        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self.round_number = 0
        self.current_index = 0
        self.trick: Optional[TrickState] = None
        self.history: List[PlayRecord] = []
        self.last_round_result: Optional[RoundResult] = None
        self.version = 0
        self._round_over = False

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def phase(self) -> Phase:
        if self.trick is None:
            return Phase.WAITING
        if self._round_over:
            return Phase.ROUND_OVER
        if self.trick.established_type is None:
            return Phase.LEAD_OPEN
        return Phase.FOLLOW_OPEN

    @property
    def current_player(self) -> Player:
        return self.players[self.current_index]

    def player(self, player_id: str) -> Player:
        return self.players[self._index_of(player_id)]

    def _index_of(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        raise KeyError(player_id)

    def is_leader(self, player_id: str) -> bool:
        return self.trick is not None and self.trick.leader == player_id

    def legal_moves(self, player_id: str) -> List[Meld]:
        """
        获取玩家的合法出牌

        Args:
            player_id: 玩家 id

        Returns:
            有序列表 (可按下标选择)；无牌可出时为空
        """
        if self.phase in (Phase.WAITING, Phase.ROUND_OVER):
            return []
        player = self.player(player_id)
        last = self.trick.last_play.meld if self.trick.last_play else None
        return MoveGenerator(player.hand).legal_moves(
            self.trick.established_type, last, self.is_leader(player_id)
        )

    def is_legal_play(self, player_id: str, meld: Meld) -> bool:
        """
        判断出牌是否合法 (等价于 meld 属于 legal_moves(player_id)，但不需要枚举)

        Args:
            player_id: 玩家 id
            meld: 要出的牌

        Returns:
            是否合法
        """
        if self.phase in (Phase.WAITING, Phase.ROUND_OVER):
            return False
        player = self.player(player_id)
        if not RuleEngine.hand_contains(player.hand, meld.cards):
            return False
        classified = RuleEngine.classify(meld.cards)
        if classified is None:
            return False

        trick = self.trick
        if trick.established_type is None:
            return self.is_leader(player_id)

        if not classified.is_bomb:
            if classified.meld_type != trick.established_type:
                return False
        if trick.last_play is None:
            return True
        return RuleEngine.can_beat(classified, trick.last_play.meld)

    def recent_history(self, count: int = 5) -> List[PlayRecord]:
        return self.history[-count:]

    def snapshot(self) -> GameSnapshot:
        """只读快照"""
        return GameSnapshot(
            version=self.version,
            round_number=self.round_number,
            phase=self.phase,
            players=tuple(
                PlayerView(p.id, p.name, p.is_bot, tuple(p.hand), p.wins, p.losses)
                for p in self.players
            ),
            current_player=self.current_player.id if self.trick is not None else None,
            trick=self.trick,
            history=tuple(self.history),
            last_round_result=self.last_round_result,
        )

    # ------------------------------------------------------------------
    # 状态转移
    # ------------------------------------------------------------------

    def start_round(self, hands: Optional[Sequence[Sequence[Card]]] = None) -> None:
        """
        开始新的一局

        首局由持有红心 3 的玩家领出 (没有则为 0 号座位)，之后由上一局赢家领出

        Args:
            hands: 指定各玩家手牌 (默认洗牌发牌)

        Raises:
            DeckIntegrityError: 牌组数据损坏
        """
        if self.trick is not None and not self._round_over:
            raise RuntimeError("Round in progress")

        if hands is None:
            deck_count = deck_count_for(self.player_count)
            deck = shuffle_deck(build_deck(deck_count), self.rng)
            hands = deal(deck, self.player_count)
            validate_deal(hands, deck_count)
        else:
            if len(hands) != self.player_count:
                raise ValueError(f"Expected {self.player_count} hands, got {len(hands)}")
            validate_deal(hands)

        for player, hand in zip(self.players, hands):
            player.clear_hand()
            player.add_cards(hand)

        self.round_number += 1
        self.history = []
        self._round_over = False

        if self.last_round_result is None:
            leader_index = self._find_starting_player()
        else:
            leader_index = self._index_of(self.last_round_result.winner)

        self.current_index = leader_index
        self.trick = TrickState(leader=self.players[leader_index].id)
        self.version += 1

        logger.debug(
            f"Round {self.round_number} started, leader={self.trick.leader}"
        )

    def _find_starting_player(self) -> int:
        for i, player in enumerate(self.players):
            if player.has_card(STARTER_CARD):
                return i
        return 0

    def _decline(self, outcome: PlayOutcome, player_id: str,
                 meld: Optional[Meld] = None) -> PlayResult:
        logger.debug(f"Declined {player_id}: {outcome.value} {meld or ''}")
        return PlayResult(outcome=outcome, player_id=player_id, meld=meld)

    def _check_turn(self, player_id: str) -> Optional[PlayOutcome]:
        if self.phase in (Phase.WAITING, Phase.ROUND_OVER):
            return PlayOutcome.NO_ACTIVE_ROUND
        self._index_of(player_id)
        if self.current_player.id != player_id:
            return PlayOutcome.NOT_YOUR_TURN
        return None

    def play(self, player_id: str, meld: Meld) -> PlayResult:
        """
        出牌

        Args:
            player_id: 玩家 id
            meld: 要出的牌

        Returns:
            PlayResult；被拒绝时状态不变
        """
        outcome = self._check_turn(player_id)
        if outcome is not None:
            return self._decline(outcome, player_id, meld)

        player = self.player(player_id)
        if not RuleEngine.hand_contains(player.hand, meld.cards):
            return self._decline(PlayOutcome.HAND_MISMATCH, player_id, meld)

        if not self.is_legal_play(player_id, meld):
            return self._decline(PlayOutcome.ILLEGAL_PLAY, player_id, meld)

        # 重新识别，牌力只由牌决定
        meld = RuleEngine.classify(meld.cards)

        player.remove_cards(meld.cards)
        self.trick = self.trick.with_play(player_id, meld)
        self.history.append(PlayRecord(player_id, PlayAction.PLAY, meld))
        self.version += 1

        round_result = self.check_round_end()
        if round_result is None:
            self.current_index = (self.current_index + 1) % self.player_count

        return PlayResult(
            outcome=PlayOutcome.ACCEPTED,
            player_id=player_id,
            meld=meld,
            round_result=round_result,
        )

    def pass_turn(self, player_id: str) -> PlayResult:
        """
        过牌

        其余玩家都过后，最后出牌的玩家成为新一轮的领出者

        Args:
            player_id: 玩家 id

        Returns:
            PlayResult
        """
        outcome = self._check_turn(player_id)
        if outcome is not None:
            return self._decline(outcome, player_id)

        if self.trick.is_open:
            return self._decline(PlayOutcome.LEAD_REQUIRED, player_id)

        self.history.append(PlayRecord(player_id, PlayAction.PASS))
        self.trick = self.trick.with_pass()
        self.version += 1

        if self.trick.pass_count >= self.player_count - 1:
            self._resolve_trick()
            return PlayResult(
                outcome=PlayOutcome.ACCEPTED,
                player_id=player_id,
                trick_resolved=True,
            )

        self.current_index = (self.current_index + 1) % self.player_count
        return PlayResult(outcome=PlayOutcome.ACCEPTED, player_id=player_id)

    def _resolve_trick(self) -> None:
        new_leader = self.trick.last_play.player_id
        self.trick = TrickState(leader=new_leader)
        self.current_index = self._index_of(new_leader)
        logger.debug(f"Trick resolved, new leader={new_leader}")

    def check_round_end(self) -> Optional[RoundResult]:
        """
        检查本局是否结束

        手牌出完的玩家赢一局，其余仍有手牌的玩家各记一负；每局只结算一次

        Returns:
            RoundResult，本局未结束返回 None
        """
        if self._round_over:
            return self.last_round_result
        if self.trick is None:
            return None

        winner = next((p for p in self.players if not p.hand), None)
        if winner is None:
            return None

        winner.wins += 1
        losers = []
        for p in self.players:
            if p is not winner and p.hand:
                p.losses += 1
                losers.append(p.id)

        result = RoundResult(self.round_number, winner.id, tuple(losers))
        self.last_round_result = result
        self._round_over = True
        self.version += 1

        logger.info(f"Round {self.round_number} won by {winner.name}")
        return result
