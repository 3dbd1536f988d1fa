"""Minimal SwarmCoordinator ABI: the WinnersDeclared event and read-only views."""

from __future__ import annotations

WINNERS_DECLARED_SIGNATURE = "WinnersDeclared(uint256,string[],uint256[])"

SWARM_COORDINATOR_ABI = [
    {
        "inputs": [],
        "name": "currentRound",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "currentStage",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "uniqueVoters",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "uniqueVotedPeers",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": "uint256", "name": "round", "type": "uint256"},
            {"indexed": False, "internalType": "string[]", "name": "winners", "type": "string[]"},
            {"indexed": False, "internalType": "uint256[]", "name": "rewards", "type": "uint256[]"},
        ],
        "name": "WinnersDeclared",
        "type": "event",
    },
]
