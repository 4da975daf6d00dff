import logging
import random

logger = logging.getLogger(__name__)

# --- Wheel & Payout Data ---
DOUBLE_ZERO = 37
POCKETS = 38  # 0..36 plus "00"
PAYOUTS = {1: 36, 2: 18, 3: 12, 4: 9, 6: 6, 12: 3, 18: 2}
VALID_COUNTS = "1, 2, 3, 4, 6, 12, or 18"


def make_wheel(seed=None):
    """Return a callable drawing one outcome in [0, 37], each with probability 1/38."""
    rng = random.Random(seed)
    return lambda: rng.randrange(POCKETS)


def display(outcome):
    return '00' if outcome == DOUBLE_ZERO else str(outcome)


def payout(bet, count):
    """Winnings for a bet spread over `count` numbers, or None if that count can't be played."""
    multiplier = PAYOUTS.get(count)
    if multiplier is None:
        return None
    return bet * multiplier


def is_number_token(token):
    return token.isascii() and token.isdigit()


def is_in_selection(outcome, selections):
    """A '00' token only matches the double-zero pocket, never 0."""
    for token in selections:
        token = token.strip()
        if token == '00':
            if outcome == DOUBLE_ZERO:
                return True
        elif is_number_token(token) and outcome == int(token):
            return True
    return False


# --- Session ---
class Roulette:
    """One player's table session: bankroll, spin count and spin history.

    Every operation returns the lines it wants shown to the player instead of
    writing to a UI, so any front-end can render them.
    """

    def __init__(self, bankroll, wheel=None):
        self.bankroll = bankroll
        self.spin_count = 0
        self.spin_history = []
        self.wheel = wheel or make_wheel()

    def play_turn(self, bet, selections):
        winnings = payout(bet, len(selections))
        if winnings is None:
            logger.debug("Rejected turn: %d selections", len(selections))
            return [f"Invalid number of selections. Try {VALID_COUNTS} numbers."]
        if self.bankroll < bet:
            logger.debug("Rejected turn: bet %d exceeds bankroll %d", bet, self.bankroll)
            return ["You do not have enough money to make this bet."]

        outcome = self.draw()
        # The stake is spent on every accepted turn, win or lose.
        self.bankroll -= bet
        self.spin_count += 1
        self.spin_history.append(outcome)
        shown = display(outcome)
        lines = [f"The ball landed on: {shown}", *str(self).splitlines()]

        if is_in_selection(outcome, selections):
            lines.append(f"You picked the winning number {shown} and win ${winnings}")
            self.bankroll += winnings
        else:
            lines.append("You did not pick the winning number.")
        logger.debug("Spin %d landed on %s, bankroll now %d", self.spin_count, shown, self.bankroll)
        return lines

    def draw(self):
        outcome = self.wheel()
        if not 0 <= outcome < POCKETS:
            raise ValueError(f"wheel produced {outcome!r}, expected 0..{POCKETS - 1}")
        return outcome

    def show_summary(self):
        return [
            "Game Summary:",
            f"Total spins: {self.spin_count}",
            f"Final bankroll: ${self.bankroll}",
            "Spin results: " + ', '.join(display(n) for n in self.spin_history),
        ]

    def __str__(self):
        return f"Bank Roll = ${self.bankroll}\nSpin Count = {self.spin_count}"
