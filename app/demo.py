"""
No-guess Minesweeper - Interactive Demo

Run with: streamlit run app/demo.py
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from typing import Optional, Tuple

from noguess import Hint, Minesweeper, MinesweeperSolver, SolverConfig
from noguess.state import EXPLODED, REVEALED_MINE

_COLORS = {
    "1": "#0000ff",
    "2": "#008000",
    "3": "#ff0000",
    "4": "#000080",
    "5": "#800000",
    "6": "#008080",
    "7": "#000000",
    "8": "#808080",
}


# (min board width, cell px, font px), widest boards first
_SIZES = [(30, 14, 10), (25, 16, 11), (16, 20, 13), (0, 26, 15)]


def _cell_look(game: Minesweeper, x: int, y: int) -> Tuple[str, str, str]:
    """(text, background, text color) of one cell."""
    v = game.visible[y][x]
    if v == EXPLODED:
        return "M", "#ff0000", "#ffffff"
    if v == REVEALED_MINE:
        return "M", "#ffcccc", "#ff0000"
    if v == 0:
        return "", "#f0f0f0", "#000000"
    if v > 0:
        return str(v), "#ffffff", _COLORS.get(str(v), "#000000")
    if game.flags[y][x]:
        return "F", "#ffa500", "#ffffff"
    return ".", "#c0c0c0", "#666666"


def render_board_html(
    game: Minesweeper,
    highlight_cell: Optional[Tuple[int, int]] = None,
) -> str:
    """Render the player's view of the board as an HTML table."""
    size, font = next((s, f) for w, s, f in _SIZES if game.width >= w)

    rows = []
    for y in range(game.height):
        tds = []
        for x in range(game.width):
            text, bg, color = _cell_look(game, x, y)
            border = "3px solid #ff0000" if (x, y) == highlight_cell else "1px solid #999"
            tds.append(
                f'<td style="width:{size}px;height:{size}px;text-align:center;'
                f'background:{bg};border:{border};color:{color};'
                f'font-weight:bold;font-size:{font}px;">{text}</td>'
            )
        rows.append("<tr>" + "".join(tds) + "</tr>")

    return (
        '<div style="font-family: monospace; line-height: 1.2;">'
        '<table style="border-collapse: collapse; margin: auto;">'
        + "".join(rows)
        + "</table></div>"
    )


def new_game(width: int, height: int, mines: int, algorithm: str, config: SolverConfig) -> None:
    st.session_state.game = Minesweeper(
        width,
        height,
        mines,
        mines_generation_algorithm=algorithm,
        solver=MinesweeperSolver(config),
    )
    st.session_state.status = None
    st.session_state.hint = None


def main():
    st.set_page_config(
        page_title="No-guess Minesweeper",
        page_icon="💣",
        layout="wide",
    )

    st.title("No-guess Minesweeper")
    st.markdown("""
    Every board is certified solvable by pure logic from the first click.
    Ask for a hint to see which deduction proves the next move.
    """)

    # Sidebar configuration
    st.sidebar.header("Game Configuration")

    preset = st.sidebar.selectbox(
        "Difficulty Preset",
        ["Beginner (9x9, 10)", "Intermediate (16x16, 40)", "Expert (30x16, 99)", "Custom"],
    )

    if preset == "Beginner (9x9, 10)":
        width, height, mines = 9, 9, 10
    elif preset == "Intermediate (16x16, 40)":
        width, height, mines = 16, 16, 40
    elif preset == "Expert (30x16, 99)":
        width, height, mines = 30, 16, 99
    else:
        width = st.sidebar.slider("Width", 6, 30, 16)
        height = st.sidebar.slider("Height", 6, 30, 16)
        max_mines = width * height - 25
        mines = st.sidebar.slider("Mines", 1, max_mines, min(40, max_mines))

    algorithm = st.sidebar.selectbox(
        "Mine Generation",
        ["no_guess_rule", "safe_neighborhood_rule", "safe_first_action_rule"],
        help="no_guess_rule: 5x5 safe zone, board certified solvable without guessing. "
             "safe_neighborhood_rule: First click + neighbors are safe. "
             "safe_first_action_rule: Only first click is safe.",
    )

    use_gaussian = st.sidebar.checkbox(
        "Gaussian elimination",
        value=False,
        help="Add linear-algebra deductions between subset logic and proof by contradiction.",
    )
    config = SolverConfig(use_gaussian=use_gaussian)

    if "game" not in st.session_state:
        st.session_state.game = None
        st.session_state.prev_settings = None

    # Auto-generate new game when board settings change
    current_settings = (width, height, mines, algorithm, use_gaussian)
    if st.session_state.prev_settings != current_settings:
        new_game(width, height, mines, algorithm, config)
        st.session_state.prev_settings = current_settings

    game: Minesweeper = st.session_state.game
    col1, col2 = st.columns([3, 1])

    with col1:
        st.subheader("Game Board")

        in_col1, in_col2 = st.columns(2)
        with in_col1:
            x = st.number_input("x", min_value=0, max_value=width - 1, value=width // 2, step=1)
        with in_col2:
            y = st.number_input("y", min_value=0, max_value=height - 1, value=height // 2, step=1)

        btn_col1, btn_col2, btn_col3, btn_col4 = st.columns(4)
        with btn_col1:
            if st.button("Reveal", type="primary"):
                with st.spinner("Generating board..." if game.first_move else "Revealing..."):
                    status, _ = game.reveal(int(x), int(y))
                if status != 0:
                    st.session_state.status = status
                st.session_state.hint = None
        with btn_col2:
            if st.button("Flag"):
                game.toggle_flag(int(x), int(y))
                st.session_state.hint = None
        with btn_col3:
            if st.button("Hint"):
                st.session_state.hint = game.hint()
        with btn_col4:
            if st.button("New Game"):
                new_game(width, height, mines, algorithm, config)
                st.rerun()

        hint: Optional[Hint] = st.session_state.hint
        highlight = (hint.x, hint.y) if hint is not None else None
        st.markdown(render_board_html(game, highlight_cell=highlight), unsafe_allow_html=True)

        if st.session_state.status == 1:
            st.success("You revealed all safe cells. You won!")
        elif st.session_state.status == -1:
            st.error("Game Over! Hit a mine.")

    with col2:
        st.subheader("Hint")
        if hint is not None:
            if hint.heuristic:
                st.warning(hint.describe())
            else:
                st.info(hint.describe())
            st.text(f"Strategy: {hint.strategy}")
            st.json(hint.to_dict())
        elif game.first_move:
            st.info("Reveal a cell to start the game.")
        else:
            st.info("Click 'Hint' for the next provable move.")

        if not game.first_move:
            st.markdown("---")
            st.metric("Generation attempts", game.generation_attempts)
            if algorithm == "no_guess_rule":
                st.metric("Certified no-guess", "Yes" if game.no_guess_certified else "No")

        st.markdown("---")
        st.subheader("Algorithm Info")
        st.markdown("""
        **Deduction Strategies:**
        1. **Counting**: A number already satisfied (or saturated) by its neighbors
        2. **Subset**: One number's unknown cells contained in another's
        3. **Contradiction**: Assuming a cell's state breaks some number
        4. **Tank**: Every mine placement of a frontier region agrees
        5. **Global**: The remaining mine count decides all unknown cells
        """)


if __name__ == "__main__":
    main()
