# main.py
import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

import structlog

from engine.main_loop import MatchResult, MatchRunner
from game.ai import create_agent
from game.world.board import AgentView, FruitBoard
from game_rng import GameRNG
from utils.config import CONFIG_FILE, load_settings
from utils.logging_utils import setup_logging

log = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Play a local fruit collecting match against an opponent."
    )
    parser.add_argument(
        "--config", type=Path, default=CONFIG_FILE, help="Main YAML config file"
    )
    parser.add_argument(
        "--overrides", type=Path, default=None, help="Optional TOML overrides"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the board and both agents (default: match.board_seed or time-based)",
    )
    parser.add_argument("--width", type=int, default=None, help="Board width")
    parser.add_argument("--height", type=int, default=None, help="Board height")
    parser.add_argument("--max-turns", type=int, default=None, help="Turn limit")
    parser.add_argument(
        "--opponent", default=None, help="ai_type of the opponent (fruit, random)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level",
    )
    parser.add_argument("--json-logs", action="store_true", help="Log JSON lines")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def play_match(args: argparse.Namespace) -> MatchResult:
    agent_cfg, match_cfg = load_settings(args.config, args.overrides)
    overrides = {
        "width": args.width,
        "height": args.height,
        "max_turns": args.max_turns,
        "opponent": args.opponent,
    }
    match_cfg = replace(match_cfg, **{k: v for k, v in overrides.items() if v is not None})

    seed = args.seed
    if seed is None:
        seed = match_cfg.board_seed
    if seed is None:
        seed = int(time.time() * 1000) % 2**32

    board = FruitBoard.generate(
        match_cfg.width,
        match_cfg.height,
        match_cfg.num_types,
        GameRNG(seed),
        min_per_type=match_cfg.min_per_type,
        max_per_type=match_cfg.max_per_type,
    )
    agent_seed = agent_cfg.rng_seed if agent_cfg.rng_seed is not None else seed
    agents = [
        create_agent("fruit", AgentView(board, 0), GameRNG(agent_seed + 1), agent_cfg),
        create_agent(
            match_cfg.opponent, AgentView(board, 1), GameRNG(agent_seed + 2), agent_cfg
        ),
    ]
    log.info("Match configured", seed=seed, opponent=match_cfg.opponent)
    return MatchRunner(board, agents, max_turns=match_cfg.max_turns).run()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log_level = (
        logging.DEBUG
        if args.verbose
        else getattr(logging, args.log_level.upper(), logging.INFO)
    )
    setup_logging(log_level, json_logs=args.json_logs)

    try:
        result = play_match(args)
    except (FileNotFoundError, ValueError) as e:
        log.error("Could not set up the match", error=str(e))
        return 2

    print(f"Turns played: {result.turns}")
    for agent_id, (score, collected) in enumerate(zip(result.scores, result.collected)):
        print(f"Agent {agent_id}: {score} categories, collected {collected}")
    print("Winner:", "draw" if result.winner is None else f"agent {result.winner}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
