"""Console UI for flashdrill."""

from cli.api_client import FlashdrillAPIClient


def card_prompt(card: dict) -> str:
    """What the learner sees on the front of a card."""
    if card['card_type'] == 'reverse':
        return ' / '.join(m['translated_definition'] or m['definition'] for m in card['meanings'])
    return card['word']['name']


def card_answer(card: dict) -> str:
    """What the learner should have answered."""
    if card['card_type'] == 'reverse':
        return ', '.join([card['word']['name']] + card['word']['readings'])
    translations = []
    for meaning in card['meanings']:
        translations.extend(meaning['word_translations'])
    return ', '.join(translations)


class ConsoleUI:
    """Console user interface for flashdrill sessions."""

    def __init__(self, client: FlashdrillAPIClient, repeat: bool = False):
        self.client = client
        self.repeat = repeat
        self.session_id = None

    def print_card(self, card: dict):
        """Print the full card, used in the study phase."""
        word = card['word']
        readings = f" [{', '.join(word['readings'])}]" if word['readings'] else ''
        print('\n' + '=' * 50)
        print(f"{word['name']}{readings}    (streak {card['streak']})")
        print('=' * 50)
        for i, meaning in enumerate(card['meanings'], 1):
            print(f"  {i}. {meaning['definition']}")
            if meaning['translated_definition']:
                print(f"     {meaning['translated_definition']}")
            if meaning['word_translations']:
                print(f"     -> {', '.join(meaning['word_translations'])}")

    def print_header(self, step: dict):
        phase = step['phase'].upper()
        print(f"\n[Set {step['set_number']} | {phase} | card {step['position'] + 1}/{step['set_size']} | "
              f"{step['remaining_cards']} unlearned]")

    def print_result(self, step: dict):
        result = step['last_result']
        if result['is_correct']:
            print('Correct!')
        else:
            print('Wrong.')
        if result['expected_answer']:
            print(f"Answer: {result['expected_answer']}")
        if step['last_transition'] == 'reset':
            print('Streak reset to 0')

    def print_outcome(self, outcome: dict):
        """Print the summary of a finished test attempt."""
        correct = sum(1 for r in outcome['results'] if r['is_correct'])
        print('\n' + '-' * 40)
        print(f"Set {'PASSED' if outcome['passed'] else 'FAILED'}: {correct}/{len(outcome['results'])} correct")
        for r in outcome['results']:
            mark = '+' if r['is_correct'] else '-'
            print(f"  {mark} {r['word_name']}")
        if outcome['changed_streaks']:
            changes = ', '.join(f"{name}={streak}" for name, streak in outcome['changed_streaks'])
            print(f"Streaks: {changes}")
        print('-' * 40)

    def handle_persist_error(self, data: dict) -> dict:
        """Offer to retry saving until it works or the learner gives up."""
        while not data['persisted']:
            print(f"Warning: progress not saved ({data['persist_error']})")
            if input('Retry saving? [Y/n] ').strip().lower() == 'n':
                return data
            try:
                data = self.client.flush(self.session_id)
                print('Progress saved.')
            except Exception as e:
                data['persist_error'] = str(e)
        return data

    def ask(self, prompt: str) -> str:
        user_input = input(prompt).strip()
        if user_input.lower() == 'exit':
            raise EOFError
        return user_input

    def next_event(self, step: dict) -> tuple:
        """Ask the learner for the next event given the current step."""
        actions = step['available_actions']
        card = step['card']

        if step['phase'] == 'study':
            self.print_header(step)
            self.print_card(card)
            if 'next_card_in_study' in actions:
                choice = self.ask('Enter = next card, "t" = start test: ')
                return ('start_test', None) if choice.lower() == 't' else ('next_card_in_study', None)
            self.ask('Enter = start test: ')
            return 'start_test', None

        if step['phase'] == 'test':
            if 'continue' in actions:
                self.print_result(step)
                self.ask('Enter = continue: ')
                return 'continue', None
            if 'submit_answer' in actions:
                self.print_header(step)
                print(f"\n>>> {card_prompt(card)}")
                answer = ''
                while not answer:
                    answer = self.ask('==> ')
                return 'submit_answer', answer
            if 'show_answer' in actions:
                self.print_header(step)
                print(f"\n>>> {card_prompt(card)}")
                self.ask('Enter = show answer: ')
                return 'show_answer', None
            print(f"Answer: {card_answer(card)}")
            choice = ''
            while choice not in ('y', 'n'):
                choice = self.ask('Did you know it? [y/n] ').lower()
            return ('answer_correct' if choice == 'y' else 'answer_incorrect'), None

        self.print_outcome(step['outcome'])
        if 'retry_set' in actions:
            self.ask('Enter = retry the set: ')
            return 'retry_set', None
        self.ask('Enter = next set: ')
        return 'next_set', None

    def abandon(self):
        """Drop the live session on the server, if there is one."""
        if self.session_id is None:
            return
        result = self.client.abandon(self.session_id)
        self.session_id = None
        if result['discarded_changes']:
            print(f"{result['discarded_changes']} unsaved streak change(s) discarded")

    def run(self):
        """Run the main session loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to flashdrill server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        try:
            data = self.client.start_session(repeat=self.repeat)
        except Exception as e:
            print(f"Error starting session: {e}")
            return
        self.session_id = data['session_id']
        settings = self.client.get_settings()
        print(f"\n{'Repeat' if self.repeat else 'Learning'} session for '{self.client.profile}': "
              f"{settings['cards_per_set']} cards per set, {settings['streak_length']} in a row to learn a card")
        print('Type "exit" to quit\n')

        try:
            while not data['step']['finished']:
                event_type, text = self.next_event(data['step'])
                try:
                    data = self.client.send_event(self.session_id, event_type, text)
                except Exception as e:
                    print(f"Error: {e}")
                    continue
                data = self.handle_persist_error(data)
        except EOFError:
            data = self.handle_persist_error(data)
            self.abandon()
            print('Goodbye!')
            return

        if data['persisted']:
            self.session_id = None
        else:
            self.abandon()
        if data['step']['outcome']:
            self.print_outcome(data['step']['outcome'])
        print('\nSession complete!')
        cards = self.client.get_cards()
        print(f"Learned {cards['learned']}/{cards['total']} cards")
