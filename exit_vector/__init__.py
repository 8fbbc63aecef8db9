"""
Exit Vector
===========

Gravity-driven balls roll through a procedurally generated labyrinth
toward five scored exit zones.

The maze_core package holds everything that defines correctness and feel:

- Maze generation (recursive backtracking, entry and exit carving)
- Ball physics (gravity, friction, wall and boundary collisions)
- Exit scoring and level rules
- A Gymnasium wrapper for agents and automated play

Tunable parameters live in game_config.yaml.
"""
